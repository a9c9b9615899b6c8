"""Domain models for rb_product — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Product:
    id: str
    name: str
    code: str | None = None
    sku: str | None = None
    category: str = ""
    description: str | None = None
    unit: str = "unit"
    price: int = 0           # millimes
    stock: int = 0           # never negative (DB CHECK)
    picture: str = ""
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ProductFilter:
    search: str | None = None
    category: str | None = None
    active: bool | None = None


# Categories the mobile app ships with; anything else found on products is appended
DEFAULT_CATEGORIES: dict[str, str] = {
    "degreasing": "Degreasing",
    "oil_remover": "Oil remover",
    "engine": "Engine",
    "car_wash": "Car wash",
}


@dataclass
class Category:
    id: str
    label: str


def category_label(category_id: str) -> str:
    return DEFAULT_CATEGORIES.get(category_id) or category_id.replace("_", " ").capitalize()
