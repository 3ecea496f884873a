# Overview: Service-layer operations for store settings; typed readers over the key-value table.

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from ..errors import ValidationError
from ..extensions import db
from ..models import Setting
from .concurrency import write_transaction

logger = logging.getLogger(__name__)

TAX_PERCENTAGE_KEY = "tax_percentage"
CASHIER_DISCOUNT_ALLOWED_KEY = "cashier_discount_allowed"

MAX_KEY_LENGTH = 128


def get_value(key: str) -> str | None:
    row = db.session.query(Setting).filter_by(key=key).first()
    return row.value if row else None


def get_setting(key: str) -> Setting | None:
    return db.session.query(Setting).filter_by(key=key).first()


def get_all() -> dict[str, str | None]:
    rows = db.session.query(Setting).order_by(Setting.key.asc()).all()
    return {row.key: row.value for row in rows}


def set_value(key: str, value) -> Setting:
    """Create or overwrite a setting. Values are stored as strings."""
    if not key or len(key) > MAX_KEY_LENGTH:
        raise ValidationError("Setting key is required")
    if value is None:
        raise ValidationError("Value is required")
    if key == TAX_PERCENTAGE_KEY:
        _validate_percentage(value)

    with write_transaction():
        row = db.session.query(Setting).filter_by(key=key).first()
        if row is None:
            row = Setting(key=key)
            db.session.add(row)
        row.value = _to_text(value)
    return row


def _to_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _validate_percentage(value) -> Decimal:
    try:
        pct = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("tax_percentage must be numeric") from None
    if not pct.is_finite() or pct < 0 or pct > 100:
        raise ValidationError("tax_percentage must be between 0 and 100")
    return pct


# =============================================================================
# PROVIDERS (injected into the sale engine)
# =============================================================================

class DatabaseSettings:
    """Reads settings from the settings table on every call."""

    def tax_percentage(self) -> Decimal:
        raw = get_value(TAX_PERCENTAGE_KEY)
        if raw is None or not raw.strip():
            return Decimal("0")
        try:
            return _validate_percentage(raw)
        except ValidationError:
            logger.warning("Ignoring malformed tax_percentage setting %r", raw)
            return Decimal("0")

    def cashier_discount_allowed(self) -> bool:
        return get_value(CASHIER_DISCOUNT_ALLOWED_KEY) == "true"


@dataclass(frozen=True)
class FixedSettings:
    """In-memory settings, for embedding the engines without a settings table."""
    tax: Decimal = Decimal("0")
    discount_allowed: bool = False

    def tax_percentage(self) -> Decimal:
        return Decimal(self.tax)

    def cashier_discount_allowed(self) -> bool:
        return self.discount_allowed
