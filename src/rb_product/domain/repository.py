"""Repository Protocol for products.

decrement_stock is the only stock write on the delivery path: a conditional
update that applies only while stock >= quantity.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_product.domain.models import Product, ProductFilter


class ProductRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, product_id: str) -> Product | None: ...

    async def get_by_code(self, db: AsyncSession, code: str) -> Product | None: ...

    async def insert(self, db: AsyncSession, product: Product) -> Product: ...

    async def update_fields(
        self, db: AsyncSession, product_id: str, fields: dict[str, Any]
    ) -> Product | None: ...

    async def delete(self, db: AsyncSession, product_id: str) -> bool: ...

    async def list_products(
        self, db: AsyncSession, flt: ProductFilter, offset: int, limit: int
    ) -> tuple[list[Product], int]: ...

    async def decrement_stock(
        self, db: AsyncSession, product_id: str, quantity: int
    ) -> Product | None: ...

    async def distinct_categories(self, db: AsyncSession) -> list[str]: ...