import logging
from abc import ABC, abstractmethod
from typing import Any

from .schemas import InventoryRecord

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for KPI pipelines (recompute, reports).
    Follows an Extract -> Transform -> Load (ETL) pattern.
    Failures propagate: a run either finishes or raises.
    """

    def __init__(self, name: str):
        self.name = name

    def run(self) -> Any:
        """
        Orchestrates the pipeline execution and returns what `load` returns.
        """
        logger.info(f"🚀 STEP: {self.name.upper()}")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        records = self.extract()
        if not records:
            logger.warning(f"⚠️ No records extracted for {self.name}.")

        # --- 2. TRANSFORM ---
        transformed = self.transform(records)

        # --- 3. LOAD ---
        result = self.load(transformed)

        logger.info(f"✅ {self.name.capitalize()} Pipeline Finished.")
        logger.info("=" * 60)
        return result

    @abstractmethod
    def extract(self) -> list[InventoryRecord]:
        """Returns the dataset's records."""

    @abstractmethod
    def transform(self, records: list[InventoryRecord]) -> Any:
        """Computes KPIs from the extracted records."""

    @abstractmethod
    def load(self, transformed: Any) -> Any:
        """Persists or publishes the computed KPIs."""
