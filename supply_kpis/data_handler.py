import logging
from pathlib import Path
import pandas as pd

from . import settings
from . import utils
from .schemas import InventoryRecord

logger = logging.getLogger(__name__)


def load_dataset(csv_path: Path) -> list[InventoryRecord] | None:
    """Reads a dataset extract (one row per SKU) into records."""
    df = utils.load_csv(csv_path)
    if df is None:
        return None
    return [InventoryRecord.model_validate(row) for row in df.to_dict("records")]


def save_outputs(
    reports: dict[str, pd.DataFrame],
    output_dir: Path | None = None,
    save_json: bool | None = None,
) -> list[Path]:
    """Saves each report to CSV and conditionally to JSON, with dated filenames."""
    output_dir = output_dir or settings.OUTPUT_DIR
    save_json = settings.SAVE_JSON_OUTPUT if save_json is None else save_json
    output_dir.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()

    written = []
    for name, df in reports.items():
        csv_path = output_dir / f"{name}_{date_suffix}.csv"
        # Undefined KPIs are NaN/None and come out as blank cells.
        df.to_csv(csv_path, index=False)
        written.append(csv_path)
        logger.info(f"✅ {name} report saved to: {csv_path}")

        if save_json:
            json_path = output_dir / f"{name}_{date_suffix}.json"
            df.to_json(json_path, orient="records", indent=2)
            written.append(json_path)
            logger.info(f"✅ JSON output saved to: {json_path}")

    if not save_json:
        logger.info("INFO: Skipping JSON file save as per configuration.")
    return written
