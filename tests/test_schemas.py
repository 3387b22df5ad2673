import logging

import numpy as np
import pytest
from pydantic import ValidationError

from supply_kpis.data_handler import load_dataset
from supply_kpis.formulas import compute_derived_fields
from supply_kpis.schemas import DERIVED_COLUMNS, DerivedFields, InventoryRecord


class TestInventoryRecord:
    def test_accepts_dataset_column_names(self):
        record = InventoryRecord.model_validate({"SKU": "A1", "Price": 25, "Lead_time": 20})

        assert record.sku == "A1"
        assert record.price == 25.0
        assert record.lead_time == 20.0

    def test_plural_lead_time_feeds_the_same_field(self):
        record = InventoryRecord.model_validate({"SKU": "A1", "Lead_times": 14})

        assert record.lead_time == 14.0
        assert record.model_dump(by_alias=True)["Lead_time"] == 14.0

    def test_conflicting_lead_times_are_flagged(self, caplog):
        with caplog.at_level(logging.WARNING):
            record = InventoryRecord.model_validate(
                {"SKU": "A1", "Lead_time": 20, "Lead_times": 7}
            )

        assert record.lead_time == 20.0
        assert "disagree" in caplog.text
        assert "A1" in caplog.text

    def test_matching_lead_times_are_not_flagged(self, caplog):
        with caplog.at_level(logging.WARNING):
            InventoryRecord.model_validate({"SKU": "A1", "Lead_time": 20, "Lead_times": 20})

        assert caplog.text == ""

    @pytest.mark.parametrize("missing", [None, float("nan")])
    def test_null_lead_time_falls_back_to_plural(self, missing, caplog):
        with caplog.at_level(logging.WARNING):
            record = InventoryRecord.model_validate(
                {"SKU": "A1", "Lead_time": missing, "Lead_times": 20}
            )

        assert record.lead_time == 20.0
        assert caplog.text == ""

    def test_blank_lead_time_column_in_csv_uses_plural(self, tmp_path):
        csv_path = tmp_path / "extract.csv"
        csv_path.write_text(
            "SKU,Number_of_products_sold,Lead_time,Lead_times\nA1,730,,20\n", encoding="utf-8"
        )

        (record,) = load_dataset(csv_path)

        assert record.lead_time == 20.0
        assert compute_derived_fields(record).reorder_point == 44.0

    def test_dataframe_cells_become_plain_values(self):
        record = InventoryRecord.model_validate(
            {
                "SKU": 1001,
                "Number_of_products_sold": np.int64(730),
                "Stock_levels": float("nan"),
                "Supplier_name": np.nan,
            }
        )

        assert record.sku == "1001"
        assert record.number_of_products_sold == 730.0
        assert record.stock_levels is None
        assert record.supplier_name is None

    def test_sku_is_required(self):
        with pytest.raises(ValidationError):
            InventoryRecord.model_validate({"Price": 25})


class TestDerivedFields:
    def test_columns_in_migration_order(self):
        assert DERIVED_COLUMNS == [
            "EOQ",
            "Reorder_Point",
            "Inventory_Turnover",
            "Days_Sales_of_Inventory",
            "Low_Stock_Status",
            "Overstock_Status",
            "Daily_Demand",
            "Lead_Time_Demand",
            "Safety_Stock",
            "Movement_Flag",
        ]

    def test_defaults_to_null(self):
        assert set(DerivedFields().to_columns().values()) == {None}

    @pytest.mark.parametrize("value", [float("inf"), 1e8, 0.001])
    def test_rejects_values_outside_decimal_10_2(self, value):
        with pytest.raises(ValidationError):
            DerivedFields(EOQ=value)

    def test_accepts_whole_number_dsi(self):
        assert DerivedFields(Days_Sales_of_Inventory=487.0).days_sales_of_inventory == 487
