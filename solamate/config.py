import os
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv


_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Root .env is canonical; solamate/.env is read as a fallback.
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(_PACKAGE_DIR / ".env")


def _first_non_empty_env(*names: str, default: str) -> str:
    """Returns the first non-empty env var value from `names`, else `default`."""
    for name in names:
        value = os.getenv(name)
        if value is not None and value != "":
            return value
    return default


def _parse_int_env(*names: str, default: int) -> int:
    """Parses the first non-empty env var in `names` as int, else returns `default`."""
    raw = _first_non_empty_env(*names, default=str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _parse_decimal_env(*names: str, default: str) -> Decimal:
    """
    Parses the first non-empty env var in `names` as a Decimal.

    Non-numeric and non-finite values fall back to `default` so a typo in
    .env cannot switch the tolerance to NaN.
    """
    raw = _first_non_empty_env(*names, default=default)
    try:
        value = Decimal(raw)
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)
    if not value.is_finite():
        return Decimal(default)
    return value


class BaseConfig:

    SECRET_KEY: str = _first_non_empty_env(
        "SECRET_KEY",
        default="change-me-in-production",
    )

    JSON_SORT_KEYS: bool = False

    # Balances within this distance of zero count as settled, and no
    # transfer at or below it is ever emitted.
    SETTLEMENT_TOLERANCE: Decimal = _parse_decimal_env(
        "SETTLEMENT_TOLERANCE",
        default="0.001",
    )

    # Decimal places accepted on input and used when rendering amounts.
    # 9 places = one lamport when amounts are denominated in SOL.
    AMOUNT_PLACES: int = _parse_int_env("AMOUNT_PLACES", default=9)

    # Settlement groups are small; this keeps a runaway client from
    # growing one ledger without bound.
    MAX_LEDGER_MEMBERS: int = _parse_int_env("MAX_LEDGER_MEMBERS", default=100)

    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="INFO")


class DevelopmentConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = False

    LOG_LEVEL: str = _first_non_empty_env("LOG_LEVEL", default="DEBUG")


class TestingConfig(BaseConfig):

    DEBUG:   bool = True
    TESTING: bool = True

    SETTLEMENT_TOLERANCE: Decimal = Decimal("0.001")
    AMOUNT_PLACES: int = 9
    MAX_LEDGER_MEMBERS: int = 5
    LOG_LEVEL: str = "WARNING"


class ProductionConfig(BaseConfig):

    DEBUG:   bool = False
    TESTING: bool = False


def validate_production_config(app) -> None:
    """
    Fail-fast guard for production configuration.

    Called by the app factory right after
    app.config.from_object(ProductionConfig).

    Raises ValueError if any required production value is missing or unsafe.
    """
    if app.config.get("SECRET_KEY") == "change-me-in-production":
        raise ValueError(
            "SECRET_KEY must be set to a strong random value in production. "
            "Do not use the default placeholder."
        )
    if app.config.get("SETTLEMENT_TOLERANCE", Decimal("0")) <= Decimal("0"):
        raise ValueError(
            "SETTLEMENT_TOLERANCE must be a positive number. "
            "A zero tolerance lets rounding dust produce transfers."
        )
    if app.config.get("AMOUNT_PLACES", 0) < 0:
        raise ValueError("AMOUNT_PLACES must not be negative.")


# ── Config selector ────────────────────────────────────────────────────────
#
# Used by the app factory:
#   from solamate.config import config_by_name
#   app.config.from_object(config_by_name[flask_env])
# ──────────────────────────────────────────────────────────────────────────

config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}

# Resolves the active config class from FLASK_ENV; development by default.
ActiveConfig: type[BaseConfig] = config_by_name.get(
    os.getenv("FLASK_ENV", "development"),
    DevelopmentConfig,
)
