"""
Return engine tests.

Verifies:
- Refunds use the price captured on the sale line
- Returned quantity never exceeds sold quantity, across several returns
- Only admins and the original cashier can return a sale
- Derived return status per sale line
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from toyshop.errors import (
    AuthorizationError,
    InternalError,
    NotFoundError,
    OverReturnError,
    ValidationError,
)
from toyshop.models import Return, ReturnItem, ReturnStatus, SaleItem
from toyshop.services import inventory_service
from toyshop.services.return_service import ReturnEngine, next_return_number, returned_quantity
from toyshop.services.sales_service import SaleEngine
from toyshop.services.settings_service import FixedSettings


@pytest.fixture
def returns():
    return ReturnEngine()


@pytest.fixture
def sale(db_session, cashier, product_a, product_b):
    """Cashier sells 3 x product_a at 900 (price override) and 1 x product_b."""
    result = SaleEngine(FixedSettings(tax=Decimal("0"))).create_sale(
        cashier,
        [
            {"product_id": product_a.id, "quantity": 3, "unit_price_cents": 900},
            {"product_id": product_b.id, "quantity": 1, "unit_price_cents": 500},
        ],
        paid_amount_cents=5000,
    )
    return result


def _sale_item(db_session, sale_id, product):
    return db_session.query(SaleItem).filter_by(sale_id=sale_id, product_id=product.id).one()


class TestCreateReturn:
    def test_full_return_of_a_line(self, db_session, returns, cashier, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)
        assert inventory_service.get_quantity(product_a.id) == 7

        result = returns.create_return(
            cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 3}], refund_method="cash"
        )

        assert result.total_refund_cents == 2700
        assert result.return_number.startswith("RET-")
        assert inventory_service.get_quantity(product_a.id) == 10

        return_doc = db_session.get(Return, result.return_id)
        assert return_doc.sale_id == sale.sale_id
        assert return_doc.cashier_id == cashier.id
        assert [(ri.sale_item_id, ri.quantity, ri.item_refund_cents) for ri in return_doc.items] == [
            (item.id, 3, 2700)
        ]

    def test_refund_uses_sale_price_not_current_price(self, db_session, returns, cashier, sale, product_a):
        product_a.price_cents = 5000
        db_session.commit()

        item = _sale_item(db_session, sale.sale_id, product_a)
        result = returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        assert result.total_refund_cents == 900

    def test_over_return_rejected(self, db_session, returns, cashier, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)

        with pytest.raises(OverReturnError) as exc_info:
            returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 5}])

        assert exc_info.value.available_to_return == 3
        assert "Only 3 available to return" in exc_info.value.message
        assert db_session.query(Return).count() == 0
        assert inventory_service.get_quantity(product_a.id) == 7

        result = returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 3}])
        assert result.total_refund_cents == 2700

    def test_partial_returns_accumulate(self, db_session, returns, cashier, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)

        returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        assert returned_quantity(item.id) == 2

        with pytest.raises(OverReturnError) as exc_info:
            returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 2}])
        assert exc_info.value.available_to_return == 1

        returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        assert returned_quantity(item.id) == 3
        assert inventory_service.get_quantity(product_a.id) == 10

        with pytest.raises(OverReturnError) as exc_info:
            returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        assert exc_info.value.available_to_return == 0

    def test_repeated_lines_summed(self, db_session, returns, cashier, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)
        with pytest.raises(OverReturnError):
            returns.create_return(
                cashier,
                sale.sale_id,
                [{"sale_item_id": item.id, "quantity": 2}, {"sale_item_id": item.id, "quantity": 2}],
            )
        assert returned_quantity(item.id) == 0

    def test_one_bad_line_rolls_back_whole_return(self, db_session, returns, cashier, sale, product_a, product_b):
        item_a = _sale_item(db_session, sale.sale_id, product_a)
        item_b = _sale_item(db_session, sale.sale_id, product_b)

        with pytest.raises(OverReturnError):
            returns.create_return(
                cashier,
                sale.sale_id,
                [{"sale_item_id": item_a.id, "quantity": 1}, {"sale_item_id": item_b.id, "quantity": 2}],
            )

        assert db_session.query(ReturnItem).count() == 0
        assert inventory_service.get_quantity(product_a.id) == 7
        assert inventory_service.get_quantity(product_b.id) == 2

    def test_storage_failure_after_first_increment_rolls_back(
        self, db_session, returns, cashier, sale, product_a, product_b, monkeypatch
    ):
        item_a = _sale_item(db_session, sale.sale_id, product_a)
        item_b = _sale_item(db_session, sale.sale_id, product_b)
        real_increment = inventory_service.increment
        calls = []

        def failing_increment(product_id, qty):
            calls.append(product_id)
            if len(calls) == 2:
                raise OperationalError("UPDATE inventory", {}, Exception("database is locked"))
            return real_increment(product_id, qty)

        monkeypatch.setattr(inventory_service, "increment", failing_increment)

        with pytest.raises(InternalError) as exc_info:
            returns.create_return(
                cashier,
                sale.sale_id,
                [{"sale_item_id": item_a.id, "quantity": 2}, {"sale_item_id": item_b.id, "quantity": 1}],
            )

        assert len(calls) == 2
        assert exc_info.value.message == "Internal server error"
        assert "locked" not in str(exc_info.value)

        assert db_session.query(Return).count() == 0
        assert db_session.query(ReturnItem).count() == 0
        assert returned_quantity(item_a.id) == 0
        assert inventory_service.get_quantity(product_a.id) == 7
        assert inventory_service.get_quantity(product_b.id) == 2

    def test_non_owner_cashier_denied(self, db_session, returns, other_cashier, admin, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)

        with pytest.raises(AuthorizationError, match="only return your own sales"):
            returns.create_return(other_cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        assert db_session.query(Return).count() == 0

        result = returns.create_return(admin, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        assert result.total_refund_cents == 900

    def test_missing_sale(self, db_session, returns, admin):
        with pytest.raises(NotFoundError):
            returns.create_return(admin, 4242, [{"sale_item_id": 1, "quantity": 1}])

    def test_sale_item_from_other_sale(self, db_session, returns, cashier, sale, product_a):
        other = SaleEngine(FixedSettings()).create_sale(
            cashier,
            [{"product_id": product_a.id, "quantity": 1, "unit_price_cents": 1000}],
            paid_amount_cents=1000,
        )
        foreign_item = _sale_item(db_session, other.sale_id, product_a)

        with pytest.raises(NotFoundError):
            returns.create_return(cashier, sale.sale_id, [{"sale_item_id": foreign_item.id, "quantity": 1}])

    @pytest.mark.parametrize("items", [None, [], [{"sale_item_id": 1, "quantity": 0}], [{"quantity": 1}]])
    def test_invalid_request(self, db_session, returns, cashier, sale, items):
        with pytest.raises(ValidationError):
            returns.create_return(cashier, sale.sale_id, items)

    def test_missing_sale_id(self, db_session, returns, cashier):
        with pytest.raises(ValidationError, match="Sale ID and items are required"):
            returns.create_return(cashier, None, [{"sale_item_id": 1, "quantity": 1}])

    def test_unknown_refund_method(self, db_session, returns, cashier, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)
        with pytest.raises(ValidationError):
            returns.create_return(
                cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}], refund_method="voucher"
            )


class TestReturnStatus:
    def test_status_progression(self, db_session, returns, cashier, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)
        assert item.return_status is ReturnStatus.UNRETURNED

        returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        db_session.expire_all()
        item = db_session.get(SaleItem, item.id)
        assert item.return_status is ReturnStatus.PARTIALLY_RETURNED
        assert item.returnable_quantity == 2

        returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 2}])
        db_session.expire_all()
        item = db_session.get(SaleItem, item.id)
        assert item.return_status is ReturnStatus.FULLY_RETURNED
        assert item.returnable_quantity == 0

    def test_returnable_items_summary(self, db_session, returns, cashier, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)
        returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])

        summary = returns.returnable_items(cashier, sale.sale_id)
        assert summary["sale"]["id"] == sale.sale_id
        by_id = {line["id"]: line for line in summary["items"]}
        assert by_id[item.id]["returned_quantity"] == 1
        assert by_id[item.id]["return_status"] == "partially_returned"

    def test_returnable_items_denied_to_other_cashier(self, db_session, returns, other_cashier, sale):
        with pytest.raises(AuthorizationError):
            returns.returnable_items(other_cashier, sale.sale_id)


class TestReturnReads:
    def test_list_returns_admin_only(self, db_session, returns, cashier, admin, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)
        returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])

        assert len(returns.list_returns(admin)) == 1
        with pytest.raises(AuthorizationError):
            returns.list_returns(cashier)

    def test_get_return(self, db_session, returns, cashier, other_cashier, admin, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)
        result = returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])

        assert returns.get_return(cashier, result.return_id).id == result.return_id
        assert returns.get_return(admin, result.return_id).id == result.return_id
        with pytest.raises(AuthorizationError):
            returns.get_return(other_cashier, result.return_id)
        with pytest.raises(NotFoundError):
            returns.get_return(admin, 999)

    def test_return_numbers_unique(self, db_session, returns, cashier, sale, product_a):
        item = _sale_item(db_session, sale.sale_id, product_a)
        first = returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        second = returns.create_return(cashier, sale.sale_id, [{"sale_item_id": item.id, "quantity": 1}])
        assert first.return_number != second.return_number

    def test_next_return_number_format(self, db_session):
        number = next_return_number()
        assert number.startswith("RET-")
        assert number[4:].isdigit()
