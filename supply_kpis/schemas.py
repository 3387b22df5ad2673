import logging
import math
from decimal import Decimal
from typing import Annotated, Any
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils import is_missing

logger = logging.getLogger(__name__)

# Column precision of the persisted derived fields: DECIMAL(10,2), INT, VARCHAR(50).
DECIMAL_PRECISION = 10
DECIMAL_SCALE = 2
INT_MIN, INT_MAX = -(2**31), 2**31 - 1
STATUS_MAX_LENGTH = 50

Status = Annotated[str, Field(max_length=STATUS_MAX_LENGTH)]


def _plain_value(value: Any) -> Any:
    """Turns pandas/numpy cells into plain Python values (NaN becomes None)."""
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, Decimal):
        value = float(value)
    return None if is_missing(value) else value


class InventoryRecord(BaseModel):
    """
    One row of the flat supply-chain dataset, keyed by SKU.
    Attribute names are snake_case; the aliases are the dataset's column names.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sku: str = Field(..., alias="SKU")
    product_type: str | None = Field(default=None, alias="Product_type")
    price: float | None = Field(default=None, alias="Price")
    number_of_products_sold: float | None = Field(
        default=None, alias="Number_of_products_sold"
    )
    revenue_generated: float | None = Field(default=None, alias="Revenue_generated")
    customer_demographics: str | None = Field(
        default=None, alias="Customer_demographics"
    )
    stock_levels: float | None = Field(default=None, alias="Stock_levels")
    # The source data spells this both ways; both feed the same field.
    lead_time: float | None = Field(
        default=None,
        validation_alias=AliasChoices("Lead_time", "Lead_times", "lead_time"),
        serialization_alias="Lead_time",
    )
    shipping_times: float | None = Field(default=None, alias="Shipping_times")
    shipping_carriers: str | None = Field(default=None, alias="Shipping_carriers")
    shipping_costs: float | None = Field(default=None, alias="Shipping_costs")
    supplier_name: str | None = Field(default=None, alias="Supplier_name")
    location: str | None = Field(default=None, alias="Location")
    production_volumes: float | None = Field(default=None, alias="Production_volumes")
    manufacturing_costs: float | None = Field(default=None, alias="Manufacturing_costs")
    defect_rates: float | None = Field(default=None, alias="Defect_rates")
    transportation_modes: str | None = Field(default=None, alias="Transportation_modes")
    routes: str | None = Field(default=None, alias="Routes")
    costs: float | None = Field(default=None, alias="Costs")

    @model_validator(mode="before")
    @classmethod
    def _normalize_row(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        row = {key: _plain_value(value) for key, value in data.items()}

        lead_time, lead_times = row.get("Lead_time"), row.get("Lead_times")
        # The first alias present wins even when NULL, so fill it from the plural.
        if lead_time is None and lead_times is not None:
            row["Lead_time"] = lead_times
        elif lead_time is not None and lead_times is not None and lead_time != lead_times:
            logger.warning(
                f"SKU {row.get('SKU', row.get('sku'))}: Lead_time={lead_time} and "
                f"Lead_times={lead_times} disagree; using Lead_time."
            )
        return row

    @field_validator(
        "sku",
        "product_type",
        "customer_demographics",
        "shipping_carriers",
        "supplier_name",
        "location",
        "transportation_modes",
        "routes",
        mode="before",
    )
    @classmethod
    def _categorical_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class DerivedFields(BaseModel):
    """
    The per-record KPIs persisted back onto the dataset.
    Field aliases are the column names added by the schema migration.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    eoq: float | None = Field(default=None, alias="EOQ")
    reorder_point: float | None = Field(default=None, alias="Reorder_Point")
    inventory_turnover: float | None = Field(default=None, alias="Inventory_Turnover")
    days_sales_of_inventory: int | None = Field(
        default=None, ge=INT_MIN, le=INT_MAX, alias="Days_Sales_of_Inventory"
    )
    low_stock_status: Status | None = Field(default=None, alias="Low_Stock_Status")
    overstock_status: Status | None = Field(default=None, alias="Overstock_Status")
    daily_demand: float | None = Field(default=None, alias="Daily_Demand")
    lead_time_demand: float | None = Field(default=None, alias="Lead_Time_Demand")
    safety_stock: float | None = Field(default=None, alias="Safety_Stock")
    movement_flag: Status | None = Field(default=None, alias="Movement_Flag")

    @field_validator(
        "eoq",
        "reorder_point",
        "inventory_turnover",
        "daily_demand",
        "lead_time_demand",
        "safety_stock",
    )
    @classmethod
    def _fits_decimal_column(cls, value: float | None) -> float | None:
        if value is None:
            return value
        if not math.isfinite(value):
            raise ValueError("value must be finite")
        if abs(value) >= 10 ** (DECIMAL_PRECISION - DECIMAL_SCALE):
            raise ValueError(
                f"value {value} exceeds DECIMAL({DECIMAL_PRECISION},{DECIMAL_SCALE})"
            )
        if round(value, DECIMAL_SCALE) != value:
            raise ValueError(f"value {value} has more than {DECIMAL_SCALE} decimal places")
        return value

    def to_columns(self) -> dict[str, Any]:
        """Column name -> value, ready for the keyed bulk update."""
        return self.model_dump(by_alias=True)


DERIVED_COLUMNS = [field.alias for field in DerivedFields.model_fields.values()]
SOURCE_COLUMNS = [
    field.serialization_alias or field.alias
    for field in InventoryRecord.model_fields.values()
]
CATEGORICAL_COLUMNS = [
    "SKU",
    "Product_type",
    "Customer_demographics",
    "Shipping_carriers",
    "Supplier_name",
    "Location",
    "Transportation_modes",
    "Routes",
]
NUMERIC_COLUMNS = [column for column in SOURCE_COLUMNS if column not in CATEGORICAL_COLUMNS]
