import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Storage ---
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'inventory.db'}")
INVENTORY_TABLE = os.getenv("INVENTORY_TABLE", "inventory_data")
# Rows sent per UPDATE statement inside the single recompute transaction.
UPDATE_CHUNK_SIZE = int(os.getenv("UPDATE_CHUNK_SIZE", "500"))

# --- Path Configuration ---
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "false").lower() in ("1", "true", "yes")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Reporting ---
TOP_N = int(os.getenv("TOP_N", "10"))

# --- Shared Business Logic ---
DAYS_PER_YEAR = 365
# Holding cost per unit per year, as a share of price.
HOLDING_COST_RATE = 0.2
# Safety stock as a share of lead-time demand.
SAFETY_STOCK_RATE = 0.1
OVERSTOCK_EOQ_MULTIPLIER = 2
SLOW_MOVER_MULTIPLIER = 3

PRICE_BAND_LOW_MAX = 20
PRICE_BAND_MEDIUM_MAX = 50

# Mean absolute deviation from the median lead time, in days.
RELIABLE_DEVIATION_MAX = 3
MODERATE_DEVIATION_MAX = 7

SLOW_SUPPLY_LEAD_TIME = 25
HIGH_QUALITY_DEFECT_RATE = 0.01
LOW_TURNOVER_THRESHOLD = 1
