import logging
import os

SEED_PATH = os.environ.get("HEMATWOI_SEED", "data/seed.json")
LOG_LEVEL = os.environ.get("HEMATWOI_LOG_LEVEL", "INFO").upper()

# progress ratios at which a budget turns "warning" / "overspend"
WARNING_THRESHOLD = 0.8
OVERSPEND_THRESHOLD = 1.0

DEFAULT_CARRY_RULE = "carry-positive"
CURRENCY = "IDR"
UNCATEGORIZED_LABEL = "Uncategorized"

# threshold under which the dashboard raises a balance alert, per account
DEFAULT_BALANCE_THRESHOLD = float(os.environ.get("HEMATWOI_BALANCE_THRESHOLD", "100000"))


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
