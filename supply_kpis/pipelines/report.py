import logging
from pathlib import Path
import pandas as pd

from supply_kpis import data_handler, settings
from supply_kpis.exceptions import StorageUnavailable
from supply_kpis.pipeline import DataPipeline
from supply_kpis.reports import build_all_reports
from supply_kpis.schemas import InventoryRecord
from supply_kpis.storage import InventoryStore

logger = logging.getLogger(__name__)


class ReportPipeline(DataPipeline):
    """
    Builds the read-only KPI reports from the store or from a CSV extract
    and saves them to the output directory.
    """

    def __init__(
        self,
        store: InventoryStore | None = None,
        csv_path: Path | None = None,
        top_n: int = settings.TOP_N,
        output_dir: Path | None = None,
        save_json: bool | None = None,
    ):
        super().__init__("report")
        if (store is None) == (csv_path is None):
            raise ValueError("Provide exactly one of store or csv_path.")
        self.store = store
        self.csv_path = csv_path
        self.top_n = top_n
        self.output_dir = output_dir
        self.save_json = save_json

    def extract(self) -> list[InventoryRecord]:
        if self.store is not None:
            return self.store.read_all()

        logger.info(f"  > Reading dataset: {self.csv_path.name}")
        records = data_handler.load_dataset(self.csv_path)
        if records is None:
            raise StorageUnavailable(f"Dataset could not be read from {self.csv_path}.")
        return records

    def transform(self, records: list[InventoryRecord]) -> dict[str, pd.DataFrame]:
        logger.info(f"--- Building KPI Reports from {len(records)} Records ---")
        return build_all_reports(records, top_n=self.top_n)

    def load(self, reports: dict[str, pd.DataFrame]) -> list[Path]:
        return data_handler.save_outputs(
            reports, output_dir=self.output_dir, save_json=self.save_json
        )
