import logging
from typing import Any
from pydantic import ValidationError

from supply_kpis.exceptions import SchemaMismatch
from supply_kpis.formulas import compute_derived_fields
from supply_kpis.pipeline import DataPipeline
from supply_kpis.schemas import InventoryRecord
from supply_kpis.storage import InventoryStore

logger = logging.getLogger(__name__)


class RecomputePipeline(DataPipeline):
    """Recomputes every derived KPI column and writes them back in one transaction."""

    def __init__(self, store: InventoryStore):
        super().__init__("recompute")
        self.store = store

    def extract(self) -> list[InventoryRecord]:
        logger.info("--- Preparing Derived Columns ---")
        self.store.ensure_derived_columns()
        return self.store.read_all()

    def transform(self, records: list[InventoryRecord]) -> dict[str, dict[str, Any]]:
        logger.info(f"--- Computing Derived Fields for {len(records)} Records ---")
        batch = {}
        for record in records:
            try:
                batch[record.sku] = compute_derived_fields(record).to_columns()
            except ValidationError as e:
                # Nothing has been written yet; the whole run stops here.
                raise SchemaMismatch(
                    f"Derived fields for SKU {record.sku} do not fit the schema: {e}"
                ) from e
        if len(batch) != len(records):
            logger.warning(
                f"⚠️ {len(records) - len(batch)} duplicate SKUs collapsed; the last row wins."
            )
        return batch

    def load(self, batch: dict[str, dict[str, Any]]) -> int:
        logger.info("--- Writing Derived Fields ---")
        updated = self.store.bulk_update(batch)
        logger.info(f"✅ {updated} records updated.")
        return updated
