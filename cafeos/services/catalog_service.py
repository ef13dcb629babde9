import json
import logging

from cafeos.core.errors import NotFoundError
from cafeos.core.id_utils import generate_prefixed_id
from cafeos.core.units import convert_to_inventory_unit
from cafeos.schemas.product import Category, Product, ProductAvailabilityOut, RecipeItem
from cafeos.services.document_store import DocumentStore
from cafeos.services.inventory_service import InventoryLedger

PRODUCTS_COLLECTION = "products"
CATEGORIES_COLLECTION = "categories"

logger = logging.getLogger("cafeos.catalog")


class Catalog:
    def __init__(self, store: DocumentStore, ledger: InventoryLedger):
        self._store = store
        self._ledger = ledger

    def fetch_products(self) -> list[Product]:
        records = self._store.read_all(PRODUCTS_COLLECTION)
        return [Product.from_record(data, key) for key, data in records.items()]

    def fetch_categories(self) -> list[Category]:
        records = self._store.read_all(CATEGORIES_COLLECTION)
        return [Category.from_record(data, key) for key, data in records.items()]

    def get_product(self, product_id: str) -> Product | None:
        data = self._store.read_one(PRODUCTS_COLLECTION, product_id)
        if data is None:
            return None
        return Product.from_record(data, product_id)

    def add_product(self, product: Product, recipe: list[RecipeItem] | None = None) -> Product:
        created = product.model_copy(
            update={
                "product_id": product.product_id or generate_prefixed_id("prod"),
                "recipe": recipe if recipe is not None else product.recipe,
            }
        )
        self._store.write_one(PRODUCTS_COLLECTION, created.product_id, created.to_record())
        logger.info(json.dumps({"event": "product_added", "product_id": created.product_id}))
        return created

    def update_product(self, product: Product, recipe: list[RecipeItem] | None = None) -> Product:
        """Replace a product record, recipe included."""
        if not product.product_id or self.get_product(product.product_id) is None:
            raise NotFoundError("product", product.product_id or "")

        updated = product.model_copy(
            update={"recipe": recipe if recipe is not None else product.recipe}
        )
        self._store.write_one(PRODUCTS_COLLECTION, updated.product_id, updated.to_record())
        logger.info(json.dumps({"event": "product_updated", "product_id": updated.product_id}))
        return updated

    def delete_product(self, product_id: str) -> None:
        if self.get_product(product_id) is None:
            raise NotFoundError("product", product_id)
        self._store.delete_one(PRODUCTS_COLLECTION, product_id)
        logger.info(json.dumps({"event": "product_deleted", "product_id": product_id}))

    def add_category(self, category: Category) -> Category:
        created = category.model_copy(
            update={"category_id": category.category_id or generate_prefixed_id("cat")}
        )
        self._store.write_one(CATEGORIES_COLLECTION, created.category_id, created.to_record())
        return created

    def is_available(self, product: Product) -> bool:
        """
        Whether current stock covers one unit of the product.

        Fails closed: a missing ingredient or a unit that cannot be converted
        makes the product unavailable. Stock is read from the store, not the
        ledger cache. Nothing is reserved.
        """
        return self._covered_by(product, self._ledger.refresh)

    def _covered_by(self, product: Product, lookup) -> bool:
        if not product.recipe:
            return True

        for recipe_item in product.recipe:
            item = lookup(recipe_item.inventory_id)
            if item is None:
                return False
            needed = convert_to_inventory_unit(recipe_item.quantity, recipe_item.unit, item)
            if needed is None:
                return False
            if item.quantity < needed:
                return False
        return True

    def available_products(
        self,
        *,
        category_id: str | None = None,
        search: str | None = None,
    ) -> list[ProductAvailabilityOut]:
        stock = {item.inventory_id: item for item in self._ledger.fetch_all()}
        products = self.fetch_products()

        if category_id:
            products = [product for product in products if product.category_id == category_id]
        if search and search.strip():
            needle = search.strip().lower()
            products = [product for product in products if needle in product.name.lower()]

        return [
            ProductAvailabilityOut(product=product, available=self._covered_by(product, stock.get))
            for product in products
        ]
