from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Protocol, Sequence

from .models import ALL_CATEGORY_ID, Branch, Category, Product, Store

LOW_STOCK_THRESHOLD = 10

ALL_CATEGORY = Category(id=ALL_CATEGORY_ID, label="All")


class CatalogProvider(Protocol):
    """Read-only product and category lookup, keyed by store and branch."""

    def stores(self) -> list[Store]: ...

    def products_for(self, store_id: str, branch_id: str) -> list[Product]: ...

    def categories_for(self, store_id: str) -> list[Category]: ...


def _product(product_id: str, name: str, price: str, stock: int, category: str) -> Product:
    return Product(id=product_id, name=name, price=Decimal(price), stock=stock, category=category)


DEFAULT_STORES: tuple[Store, ...] = (
    Store(
        id="daily-dope",
        label="Daily Dope Vape Shop",
        branches=(
            Branch(id="vicas", label="Vicas"),
            Branch(id="deparo", label="Deparo"),
            Branch(id="north-mall", label="North Mall"),
        ),
    ),
    Store(
        id="moto-masters",
        label="Moto Masters Shop",
        branches=(
            Branch(id="westside", label="Westside"),
            Branch(id="uptown", label="Uptown"),
        ),
    ),
)

DEFAULT_CATEGORIES: dict[str, tuple[Category, ...]] = {
    "daily-dope": (
        ALL_CATEGORY,
        Category(id="e-liquids", label="E-Liquids"),
        Category(id="coils", label="Coils"),
        Category(id="devices", label="Devices"),
    ),
    "moto-masters": (
        ALL_CATEGORY,
        Category(id="lubricants", label="Lubricants"),
        Category(id="brake-parts", label="Brake Parts"),
        Category(id="filters", label="Filters"),
    ),
}

# Each branch holds its own inventory, so products are keyed by (store, branch).
DEFAULT_PRODUCTS: dict[tuple[str, str], tuple[Product, ...]] = {
    ("daily-dope", "vicas"): (
        _product("blue-razz-60ml", "Blue Razz E-Liquid 60ml", "24.99", 45, "e-liquids"),
        _product("strawberry-dream-60ml", "Strawberry Dream 60ml", "24.99", 32, "e-liquids"),
        _product("mesh-coil-015", "Mesh Coil 0.15Ω (5-pack)", "19.99", 67, "coils"),
    ),
    ("daily-dope", "deparo"): (
        _product("menthol-ice-30ml", "Menthol Ice 30ml", "14.99", 28, "e-liquids"),
        _product("tropical-punch-60ml", "Tropical Punch 60ml", "24.99", 19, "e-liquids"),
        _product("ceramic-coil-04", "Ceramic Coil 0.4Ω (5-pack)", "22.99", 8, "coils"),
    ),
    ("daily-dope", "north-mall"): (
        _product("grape-burst-60ml", "Grape Burst 60ml", "24.99", 52, "e-liquids"),
        _product("standard-coil-12", "Standard Coil 1.2Ω (5-pack)", "16.99", 41, "coils"),
        _product("pod-system-starter", "Pod System Starter Kit", "49.99", 15, "devices"),
    ),
    ("moto-masters", "westside"): (
        _product("engine-oil-10w40", "Engine Oil 10W-40 (1L)", "12.99", 120, "lubricants"),
        _product("brake-pads-front", "Front Brake Pads", "34.99", 25, "brake-parts"),
        _product("oil-filter-std", "Standard Oil Filter", "8.99", 65, "filters"),
    ),
    ("moto-masters", "uptown"): (
        _product("chain-lube", "Chain Lubricant Spray", "9.99", 48, "lubricants"),
        _product("brake-disc-rear", "Rear Brake Disc", "54.99", 12, "brake-parts"),
        _product("air-filter-perf", "Performance Air Filter", "18.99", 7, "filters"),
    ),
}


class StaticCatalog:
    def __init__(
        self,
        stores: Iterable[Store] = DEFAULT_STORES,
        products: Mapping[tuple[str, str], Sequence[Product]] | None = None,
        categories: Mapping[str, Sequence[Category]] | None = None,
    ) -> None:
        self._stores = tuple(stores)
        self._products = dict(DEFAULT_PRODUCTS if products is None else products)
        self._categories = dict(DEFAULT_CATEGORIES if categories is None else categories)

    def stores(self) -> list[Store]:
        return list(self._stores)

    def store(self, store_id: str) -> Store | None:
        for store in self._stores:
            if store.id == store_id:
                return store
        return None

    def products_for(self, store_id: str, branch_id: str) -> list[Product]:
        return list(self._products.get((store_id, branch_id), ()))

    def categories_for(self, store_id: str) -> list[Category]:
        categories = list(self._categories.get(store_id, ()))
        if not any(category.id == ALL_CATEGORY_ID for category in categories):
            categories.insert(0, ALL_CATEGORY)
        return categories


def is_low_stock(product: Product, threshold: int = LOW_STOCK_THRESHOLD) -> bool:
    return product.stock < threshold


def filter_products(
    products: Iterable[Product],
    *,
    search: str = "",
    category: str = ALL_CATEGORY_ID,
) -> list[Product]:
    needle = search.strip().lower()
    return [
        product
        for product in products
        if needle in product.name.lower()
        and (category == ALL_CATEGORY_ID or product.category == category)
    ]
