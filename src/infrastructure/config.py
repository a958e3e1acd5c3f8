from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    currency: str = "FJD"
    log_level: int = logging.INFO


def load_app_config() -> AppConfig:
    """Read settings from the environment (populated from ``.env`` by ``main``)."""
    return AppConfig(
        data_dir=Path(os.getenv("FINANCE_DATA_DIR", ".finance-data")),
        currency=os.getenv("FINANCE_CURRENCY", "FJD").upper(),
        log_level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    )
