import sys
from pathlib import Path

import pytest
from sqlalchemy import Column, MetaData, Table, create_engine, insert

# Ensure project root is on sys.path to allow `import supply_kpis` and `import main`.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from supply_kpis.schemas import InventoryRecord  # noqa: E402
from supply_kpis.storage import SOURCE_COLUMN_TYPES, InventoryStore  # noqa: E402

BASE_ROW = {
    "Product_type": "skincare",
    "Price": 25.0,
    "Number_of_products_sold": 730,
    "Revenue_generated": 5000.0,
    "Customer_demographics": "Female",
    "Stock_levels": 30.0,
    "Lead_time": 20.0,
    "Shipping_times": 4.0,
    "Shipping_carriers": "Carrier A",
    "Shipping_costs": 50.0,
    "Supplier_name": "Supplier 1",
    "Location": "Mumbai",
    "Production_volumes": 500.0,
    "Manufacturing_costs": 40.0,
    "Defect_rates": 0.02,
    "Transportation_modes": "Road",
    "Routes": "Route A",
    "Costs": 300.0,
}


def make_row(sku: str, **overrides) -> dict:
    return {"SKU": sku, **BASE_ROW, **overrides}


def make_record(sku: str = "A1", **overrides) -> InventoryRecord:
    return InventoryRecord.model_validate(make_row(sku, **overrides))


SAMPLE_ROWS = [
    make_row("A1"),
    make_row(
        "A2",
        Product_type="haircare",
        Price=19.99,
        Number_of_products_sold=100,
        Revenue_generated=1500.0,
        Stock_levels=2000.0,
        Lead_time=30.0,
        Shipping_times=9.0,
        Shipping_carriers="Carrier B",
        Shipping_costs=80.0,
        Supplier_name="Supplier 2",
        Location="Delhi",
        Production_volumes=1000.0,
        Defect_rates=0.005,
    ),
    make_row(
        "A3",
        Product_type="cosmetics",
        Price=60.0,
        Number_of_products_sold=0,
        Revenue_generated=0.0,
        Stock_levels=0.0,
        Lead_time=28.0,
        Customer_demographics="Male",
        Shipping_carriers="Carrier B",
        Shipping_costs=20.0,
        Supplier_name="Supplier 2",
        Location="Delhi",
        Production_volumes=0.0,
        Defect_rates=0.0,
        Routes="Route B",
        Transportation_modes="Air",
        Costs=700.0,
    ),
]


def create_source_table(engine, rows, table_name="inventory_data", lead_time_column="Lead_time"):
    """Provisions a source-only table the way the upstream load would."""
    metadata = MetaData()
    columns = []
    for name, column_type in SOURCE_COLUMN_TYPES.items():
        if name == "Lead_time":
            name = lead_time_column
        columns.append(Column(name, column_type, primary_key=(name == "SKU")))
    table = Table(table_name, metadata, *columns)
    metadata.create_all(engine)

    if rows:
        payload = []
        for row in rows:
            row = dict(row)
            if lead_time_column != "Lead_time":
                row[lead_time_column] = row.pop("Lead_time", None)
            payload.append(row)
        with engine.begin() as conn:
            conn.execute(insert(table), payload)
    return table


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'inventory.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    create_source_table(engine, SAMPLE_ROWS)
    return InventoryStore(engine=engine)


@pytest.fixture
def sample_records():
    return [InventoryRecord.model_validate(row) for row in SAMPLE_ROWS]
