"""Runtime settings, read from environment variables.

    FINPLAN_DATA_DIR          base folder for user data (default: ./user_data)
    FINPLAN_PLANS_PATH        JSON file holding plans + breakdowns
    FINPLAN_LEDGER_PATH       SQLite file holding recorded expenses
    FINPLAN_DEFAULT_CURRENCY  currency applied to plans created without one
    FINPLAN_LOG_LEVEL         logging level name (default: INFO)
    FINPLAN_API_PORT          port for the REST app (default: 8000)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_DATA_DIR = os.path.join(BASE_DIR, "user_data")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class Settings:
    data_dir: str = DEFAULT_DATA_DIR
    plans_path: str = os.path.join(DEFAULT_DATA_DIR, "plans.json")
    ledger_path: str = os.path.join(DEFAULT_DATA_DIR, "ledger", "expenses.sqlite")
    default_currency: str = "USD"
    log_level: str = "INFO"
    api_port: int = 8000


def load_settings_from_env() -> Settings:
    data_dir = os.getenv("FINPLAN_DATA_DIR") or DEFAULT_DATA_DIR
    try:
        api_port = int(os.getenv("FINPLAN_API_PORT", 8000))
    except ValueError:
        api_port = 8000
    return Settings(
        data_dir=data_dir,
        plans_path=os.getenv("FINPLAN_PLANS_PATH") or os.path.join(data_dir, "plans.json"),
        ledger_path=os.getenv("FINPLAN_LEDGER_PATH") or os.path.join(data_dir, "ledger", "expenses.sqlite"),
        default_currency=os.getenv("FINPLAN_DEFAULT_CURRENCY", "USD").strip().upper() or "USD",
        log_level=os.getenv("FINPLAN_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        api_port=api_port,
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
