import pytest

from toyshop.errors import ConflictError, NotFoundError, ValidationError
from toyshop.models import InventoryRecord, Product
from toyshop.services import catalog_service
from toyshop.services.sales_service import SaleEngine
from toyshop.services.settings_service import FixedSettings


class TestCategories:
    def test_create_and_list(self, db_session):
        catalog_service.create_category("Puzzles")
        catalog_service.create_category("Board Games", "Family games")
        assert [c.name for c in catalog_service.list_categories()] == ["Board Games", "Puzzles"]

    def test_duplicate_name(self, db_session, category):
        with pytest.raises(ConflictError):
            catalog_service.create_category("Action Figures")

    def test_blank_name(self, db_session):
        with pytest.raises(ValidationError):
            catalog_service.create_category("   ")

    def test_rename(self, db_session, category):
        updated = catalog_service.update_category(category.id, name="Figures")
        assert updated.name == "Figures"

    def test_rename_to_existing(self, db_session, category):
        other = catalog_service.create_category("Puzzles")
        with pytest.raises(ConflictError):
            catalog_service.update_category(other.id, name="Action Figures")

    def test_delete_in_use(self, db_session, category, product_a):
        with pytest.raises(ConflictError):
            catalog_service.delete_category(category.id)

    def test_delete_empty(self, db_session):
        category = catalog_service.create_category("Puzzles")
        catalog_service.delete_category(category.id)
        with pytest.raises(NotFoundError):
            catalog_service.get_category(category.id)


class TestProducts:
    def test_create_with_inventory(self, db_session, category):
        product = catalog_service.create_product(
            initial_quantity=12,
            name="Kite",
            category_id=category.id,
            price_cents=1500,
            barcode="KITE-1",
        )
        assert product.inventory.quantity == 12
        assert product.min_stock == 10
        assert product.status == "available"
        assert catalog_service.find_inventory(product.id) == {"quantity": 12, "min_stock": 10}

    def test_create_requires_fields(self, db_session, category):
        with pytest.raises(ValidationError) as exc_info:
            catalog_service.create_product(name="Kite")
        assert set(exc_info.value.details["missing"]) == {"category_id", "price_cents"}

    def test_unknown_category(self, db_session):
        with pytest.raises(NotFoundError):
            catalog_service.create_product(name="Kite", category_id=999, price_cents=100)
        assert db_session.query(Product).count() == 0

    def test_duplicate_barcode(self, db_session, category, product_a):
        with pytest.raises(ConflictError):
            catalog_service.create_product(
                name="Copy", category_id=category.id, price_cents=100, barcode=product_a.barcode
            )

    def test_negative_price(self, db_session, category):
        with pytest.raises(ValidationError):
            catalog_service.create_product(name="Kite", category_id=category.id, price_cents=-1)

    def test_unknown_field(self, db_session, category):
        with pytest.raises(ValidationError):
            catalog_service.create_product(name="Kite", category_id=category.id, price_cents=1, colour="red")

    def test_update(self, db_session, product_a):
        product = catalog_service.update_product(product_a.id, price_cents=1200, status="discontinued")
        assert product.price_cents == 1200
        assert not product.is_available

    def test_update_invalid_status(self, db_session, product_a):
        with pytest.raises(ValidationError):
            catalog_service.update_product(product_a.id, status="lost")

    def test_delete_removes_inventory(self, db_session, product_a):
        catalog_service.delete_product(product_a.id)
        assert db_session.query(InventoryRecord).count() == 0

    def test_delete_with_sales_history(self, db_session, cashier, product_a):
        SaleEngine(FixedSettings()).create_sale(
            cashier,
            [{"product_id": product_a.id, "quantity": 1, "unit_price_cents": 1000}],
            paid_amount_cents=1000,
        )
        with pytest.raises(ConflictError):
            catalog_service.delete_product(product_a.id)

    def test_search(self, db_session, product_a, product_b):
        assert [p.id for p in catalog_service.search_products("robot")] == [product_a.id]
        assert [p.id for p in catalog_service.search_products("TOY-B")] == [product_b.id]
        assert len(catalog_service.search_products("TOY")) == 2
        assert catalog_service.search_products("  ") == []

    def test_search_limit(self, db_session, category):
        for i in range(12):
            catalog_service.create_product(name=f"Ball {i:02d}", category_id=category.id, price_cents=100)
        assert len(catalog_service.search_products("Ball")) == 10

    def test_list_by_category(self, db_session, category, product_a):
        other = catalog_service.create_category("Puzzles")
        catalog_service.create_product(name="Jigsaw", category_id=other.id, price_cents=900)

        assert [p.name for p in catalog_service.list_products(category_id=category.id)] == ["Robot Hero"]
        assert len(catalog_service.list_products()) == 2

    def test_find_inventory_missing(self, db_session):
        with pytest.raises(NotFoundError):
            catalog_service.find_inventory(404)
