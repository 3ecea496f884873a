import unittest
from decimal import Decimal

from flask import Flask

from toyshop.errors import ValidationError
from toyshop.extensions import db
from toyshop.models import Setting
from toyshop.services import settings_service
from toyshop.services.settings_service import (
    CASHIER_DISCOUNT_ALLOWED_KEY,
    TAX_PERCENTAGE_KEY,
    DatabaseSettings,
    FixedSettings,
)


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from toyshop import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(Setting).delete()
        db.session.commit()
        self.settings = DatabaseSettings()

    def test_tax_defaults_to_zero(self):
        self.assertEqual(self.settings.tax_percentage(), Decimal("0"))

    def test_tax_read_from_table(self):
        settings_service.set_value(TAX_PERCENTAGE_KEY, "8.25")
        self.assertEqual(self.settings.tax_percentage(), Decimal("8.25"))

    def test_malformed_tax_falls_back_to_zero(self):
        db.session.add(Setting(key=TAX_PERCENTAGE_KEY, value="ten percent"))
        db.session.commit()
        with self.assertLogs("toyshop.services.settings_service", level="WARNING"):
            self.assertEqual(self.settings.tax_percentage(), Decimal("0"))

    def test_set_tax_validates_range(self):
        for bad in ("-1", "100.5", "abc", "NaN"):
            with self.assertRaises(ValidationError):
                settings_service.set_value(TAX_PERCENTAGE_KEY, bad)
        self.assertIsNone(settings_service.get_value(TAX_PERCENTAGE_KEY))

    def test_discount_flag_only_true_string(self):
        self.assertFalse(self.settings.cashier_discount_allowed())

        settings_service.set_value(CASHIER_DISCOUNT_ALLOWED_KEY, True)
        self.assertEqual(settings_service.get_value(CASHIER_DISCOUNT_ALLOWED_KEY), "true")
        self.assertTrue(self.settings.cashier_discount_allowed())

        settings_service.set_value(CASHIER_DISCOUNT_ALLOWED_KEY, "yes")
        self.assertFalse(self.settings.cashier_discount_allowed())

    def test_set_value_overwrites(self):
        settings_service.set_value("store_name", "Toy Planet")
        settings_service.set_value("store_name", "Toy Galaxy")
        self.assertEqual(db.session.query(Setting).filter_by(key="store_name").count(), 1)
        self.assertEqual(settings_service.get_all(), {"store_name": "Toy Galaxy"})

    def test_set_value_requires_value(self):
        with self.assertRaises(ValidationError):
            settings_service.set_value("store_name", None)

    def test_fixed_settings(self):
        fixed = FixedSettings(tax=Decimal("5"), discount_allowed=True)
        self.assertEqual(fixed.tax_percentage(), Decimal("5"))
        self.assertTrue(fixed.cashier_discount_allowed())


if __name__ == "__main__":
    unittest.main()
