"""Pydantic schemas for rb_product API."""

from pydantic import Field

from src.rb_common.millimes import millimes_to_display
from src.rb_common.schemas import CamelModel
from src.rb_product.domain.models import Product


class CreateProductRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str | None = Field(None, max_length=64)
    sku: str | None = Field(None, max_length=64)
    category: str = ""
    description: str | None = None
    unit: str = "unit"
    price: int = Field(0, ge=0, description="Unit price in millimes")
    stock: int = Field(0, ge=0)
    picture: str = ""
    active: bool = True


class UpdateProductRequest(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    code: str | None = None
    sku: str | None = None
    category: str | None = None
    description: str | None = None
    unit: str | None = None
    price: int | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)
    picture: str | None = None
    active: bool | None = None


class SetStockRequest(CamelModel):
    # Negative values are rejected by the service with a BAD_REQUEST, not here
    quantity: int


class ProductResponse(CamelModel):
    id: str
    name: str
    sku: str
    category: str
    price: int
    price_display: str
    unit: str
    stock: int
    picture: str
    active: bool

    @classmethod
    def from_domain(cls, p: Product) -> "ProductResponse":
        return cls(
            id=p.id,
            name=p.name,
            sku=p.sku or p.code or "",
            category=p.category,
            price=p.price,
            price_display=millimes_to_display(p.price),
            unit=p.unit,
            stock=p.stock,
            picture=p.picture,
            active=p.active,
        )
