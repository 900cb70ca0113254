"""
Configuration loader for the ledger engine and its HTTP host.
Reads from a .env file (or real environment variables).

Variables:
  LEDGER_LOG_LEVEL       : logging level name (default: "INFO")
  LEDGER_EQUAL_REMAINDER : what to do with equal-split rounding residue,
                           "none" or "payer" (default: "none")
  LEDGER_API_TITLE       : title shown in the API docs (default: "Group Ledger")
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


REMAINDER_NONE = "none"
REMAINDER_PAYER = "payer"
VALID_REMAINDER_MODES = {REMAINDER_NONE, REMAINDER_PAYER}


def get_log_level() -> str:
    """Return the configured log level name, upper-cased."""
    return os.getenv("LEDGER_LOG_LEVEL", "INFO").strip().upper()


def get_equal_remainder_mode() -> str:
    """
    Return the configured equal-split remainder mode.

    Raises:
        ValueError: If the variable holds an unknown mode.
    """
    mode = os.getenv("LEDGER_EQUAL_REMAINDER", REMAINDER_NONE).strip().lower()
    if mode not in VALID_REMAINDER_MODES:
        raise ValueError(
            f"LEDGER_EQUAL_REMAINDER must be one of {sorted(VALID_REMAINDER_MODES)}, got: {mode}"
        )
    return mode


def get_api_title() -> str:
    return os.getenv("LEDGER_API_TITLE", "Group Ledger")


def configure_logging(level: str = None) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=level or get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def validate_settings() -> None:
    """
    Fail fast on bad configuration when the host starts.

    Raises:
        ValueError: If any variable holds an invalid value.
    """
    get_equal_remainder_mode()
