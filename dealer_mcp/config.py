"""Runtime configuration for the dealer back office, read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dealer_mcp.constants import (
    DEFAULT_FLOORPLAN_RATE,
    DEFAULT_TAX_RATE,
    DOCUMENTATION_FEE,
    PAYMENT_TERMS_DAYS,
)

logger = logging.getLogger(__name__)

_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class DealerConfig:
    """Dealer-wide settings. Unset ``db_path`` means in-memory repositories."""
    db_path: str | None = None
    seed_demo_data: bool = True
    floorplan_rate: float = DEFAULT_FLOORPLAN_RATE
    tax_rate: float = DEFAULT_TAX_RATE
    documentation_fee: float = DOCUMENTATION_FEE
    payment_terms_days: int = PAYMENT_TERMS_DAYS
    log_level: str = "INFO"
    cars_com_api_key: str = ""
    cars_com_dealer_id: str = ""
    autotrader_api_key: str = ""
    autotrader_dealer_id: str = ""


def load_env_file(path: Path = _ENV_FILE) -> None:
    """Load ``KEY=VALUE`` lines into ``os.environ`` without overriding existing keys."""
    if not path.is_file():
        return
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            k, _, v = line.partition("=")
            os.environ.setdefault(k.strip(), v.strip())


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in _TRUE_VALUES


def load_config() -> DealerConfig:
    """Build a :class:`DealerConfig` from ``DEALER_*`` and marketplace env vars."""
    load_env_file()
    return DealerConfig(
        db_path=os.environ.get("DEALER_DB_PATH", "").strip() or None,
        seed_demo_data=_env_bool("DEALER_SEED_DEMO_DATA", True),
        floorplan_rate=_env_float("DEALER_FLOORPLAN_RATE", DEFAULT_FLOORPLAN_RATE),
        tax_rate=_env_float("DEALER_TAX_RATE", DEFAULT_TAX_RATE),
        documentation_fee=_env_float("DEALER_DOC_FEE", DOCUMENTATION_FEE),
        payment_terms_days=_env_int("DEALER_PAYMENT_TERMS_DAYS", PAYMENT_TERMS_DAYS),
        log_level=os.environ.get("DEALER_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        cars_com_api_key=os.environ.get("CARS_COM_API_KEY", "").strip(),
        cars_com_dealer_id=os.environ.get("CARS_COM_DEALER_ID", "").strip(),
        autotrader_api_key=os.environ.get("AUTOTRADER_API_KEY", "").strip(),
        autotrader_dealer_id=os.environ.get("AUTOTRADER_DEALER_ID", "").strip(),
    )


def configure_logging(config: DealerConfig) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
