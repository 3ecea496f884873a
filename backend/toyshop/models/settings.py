from __future__ import annotations

from ..extensions import db
from toyshop.time_utils import to_utc_z, utcnow


class Setting(db.Model):
    """
    Store-wide key-value settings (tax_percentage, cashier_discount_allowed, ...).

    Values are stored as text; typed readers live in settings_service.
    """
    __tablename__ = "settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    key = db.Column(db.String(128), nullable=False, unique=True)
    value = db.Column(db.Text, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "updated_at": to_utc_z(self.updated_at),
        }
