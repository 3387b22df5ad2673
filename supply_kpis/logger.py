import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from . import settings


def setup_logger(
    name: str = None,
    log_level: int | str = settings.LOG_LEVEL,
    log_dir: Path | None = None,
) -> logging.Logger:
    """
    Sets up a console (stdout) and rotating file log for a KPI run.
    Calling it again on an already configured logger changes nothing but the level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    # SQLAlchemy echoes every statement at INFO once a root handler exists.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    if logger.hasHandlers():
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    log_dir = log_dir or settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / "kpi_engine.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)

    return logger
