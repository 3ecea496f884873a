import pytest

from toyshop.errors import NotFoundError, ValidationError
from toyshop.models import InventoryRecord
from toyshop.services import inventory_service
from toyshop.services.inventory_service import AdjustmentMode


class TestAdjustments:
    def test_add(self, db_session, product_a):
        record = inventory_service.set_or_adjust(product_a.id, 5, "add")
        assert record.quantity == 15
        assert inventory_service.get_quantity(product_a.id) == 15

    def test_subtract(self, db_session, product_a):
        inventory_service.set_or_adjust(product_a.id, 4, AdjustmentMode.SUBTRACT)
        assert inventory_service.get_quantity(product_a.id) == 6

    def test_subtract_clamps_at_zero(self, db_session, product_b):
        inventory_service.set_or_adjust(product_b.id, 10, "subtract")
        assert inventory_service.get_quantity(product_b.id) == 0

    def test_set(self, db_session, product_a):
        inventory_service.set_or_adjust(product_a.id, 42, "set")
        assert inventory_service.get_quantity(product_a.id) == 42

    def test_set_rejects_negative(self, db_session, product_a):
        with pytest.raises(ValidationError):
            inventory_service.set_or_adjust(product_a.id, -1, "set")
        assert inventory_service.get_quantity(product_a.id) == 10

    @pytest.mark.parametrize("qty", [1.5, "3", None, True])
    def test_quantity_must_be_integer(self, db_session, product_a, qty):
        with pytest.raises(ValidationError):
            inventory_service.set_or_adjust(product_a.id, qty, "add")

    def test_unknown_mode(self, db_session, product_a):
        with pytest.raises(ValidationError, match="adjustment_type"):
            inventory_service.set_or_adjust(product_a.id, 1, "multiply")

    def test_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            inventory_service.set_or_adjust(9999, 1, "add")

    def test_updated_at_touched(self, db_session, product_a):
        before = db_session.query(InventoryRecord).filter_by(product_id=product_a.id).one().updated_at
        record = inventory_service.set_or_adjust(product_a.id, 1, "add")
        assert record.updated_at >= before


class TestLedgerSteps:
    def test_increment_and_decrement_do_not_commit(self, db_session, product_a):
        inventory_service.decrement(product_a.id, 4)
        inventory_service.increment(product_a.id, 1)
        assert inventory_service.get_quantity(product_a.id) == 7

        db_session.rollback()
        assert inventory_service.get_quantity(product_a.id) == 10

    def test_get_quantity_missing(self, db_session):
        with pytest.raises(NotFoundError):
            inventory_service.get_quantity(123)


class TestListings:
    def test_list_inventory_by_name(self, db_session, product_a, product_b):
        names = [r.product.name for r in inventory_service.list_inventory()]
        assert names == ["Dinosaur Set", "Robot Hero"]

    def test_low_stock(self, db_session, product_a, product_b):
        # product_b: 3 on hand, min 10; product_a: 10 on hand, min 10
        low = inventory_service.low_stock()
        assert [r.product_id for r in low] == [product_b.id, product_a.id]

        inventory_service.set_or_adjust(product_a.id, 50, "set")
        assert [r.product_id for r in inventory_service.low_stock()] == [product_b.id]

    def test_low_stock_skips_discontinued(self, db_session, product_b):
        product_b.status = "discontinued"
        db_session.commit()
        assert inventory_service.low_stock() == []
