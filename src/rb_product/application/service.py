"""ProductApplicationService — catalogue CRUD and manual stock adjustments.

Stock only goes down on the delivery path (see rb_delivery); here an ADMIN
can set it to an absolute value.
"""

from dataclasses import asdict
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_common.errors import BadRequestError, DuplicateCodeError, ProductNotFoundError
from src.rb_common.id_generator import generate_id
from src.rb_common.pagination import PageResponse, clamp_limit, clamp_page, page_offset
from src.rb_product.application.schemas import (
    CreateProductRequest,
    ProductResponse,
    UpdateProductRequest,
)
from src.rb_product.domain.models import (
    DEFAULT_CATEGORIES,
    Category,
    Product,
    ProductFilter,
    category_label,
)
from src.rb_product.domain.repository import ProductRepositoryProtocol
from src.rb_product.infrastructure.persistence import ProductRepository


class ProductApplicationService:
    def __init__(self, repo: ProductRepositoryProtocol | None = None) -> None:
        self._repo: ProductRepositoryProtocol = repo or ProductRepository()

    async def get_product(self, db: AsyncSession, product_id: str) -> ProductResponse:
        product = await self._repo.get_by_id(db, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return ProductResponse.from_domain(product)

    async def list_products(
        self, db: AsyncSession, page: int, limit: int, flt: ProductFilter
    ) -> PageResponse:
        page, limit = clamp_page(page), clamp_limit(limit)
        items, total = await self._repo.list_products(db, flt, page_offset(page, limit), limit)
        return PageResponse(
            results=[ProductResponse.from_domain(p).to_wire() for p in items],
            page=page,
            limit=limit,
            total=total,
        )

    async def create_product(
        self, db: AsyncSession, req: CreateProductRequest
    ) -> ProductResponse:
        if req.code and await self._repo.get_by_code(db, req.code) is not None:
            raise DuplicateCodeError("Product", req.code)
        product = Product(
            id=generate_id(),
            name=req.name,
            code=req.code,
            sku=req.sku if req.sku is not None else req.code,
            category=req.category,
            description=req.description,
            unit=req.unit,
            price=req.price,
            stock=req.stock,
            picture=req.picture,
            active=req.active,
        )
        return await self._write(db, lambda: self._repo.insert(db, product), product.id)

    async def update_product(
        self, db: AsyncSession, product_id: str, req: UpdateProductRequest
    ) -> ProductResponse:
        fields = req.model_dump(exclude_unset=True)
        new_code = fields.get("code")
        if new_code:
            existing = await self._repo.get_by_code(db, new_code)
            if existing is not None and existing.id != product_id:
                raise DuplicateCodeError("Product", new_code)
        return await self._update(db, product_id, fields)

    async def set_stock(
        self, db: AsyncSession, product_id: str, quantity: int
    ) -> ProductResponse:
        if quantity < 0:
            raise BadRequestError("Stock cannot be negative")
        return await self._update(db, product_id, {"stock": quantity})

    async def deactivate_product(self, db: AsyncSession, product_id: str) -> ProductResponse:
        return await self._update(db, product_id, {"active": False})

    async def list_categories(self, db: AsyncSession) -> list[dict[str, str]]:
        found = await self._repo.distinct_categories(db)
        ids = list(DEFAULT_CATEGORIES) + [c for c in found if c not in DEFAULT_CATEGORIES]
        return [asdict(Category(id=c, label=category_label(c))) for c in ids]

    async def delete_product(self, db: AsyncSession, product_id: str) -> None:
        try:
            deleted = await self._repo.delete(db, product_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if not deleted:
            raise ProductNotFoundError(product_id)

    async def _update(
        self, db: AsyncSession, product_id: str, fields: dict[str, Any]
    ) -> ProductResponse:
        return await self._write(
            db, lambda: self._repo.update_fields(db, product_id, fields), product_id
        )

    async def _write(self, db: AsyncSession, op: Any, product_id: str) -> ProductResponse:
        try:
            product = await op()
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if product is None:
            raise ProductNotFoundError(product_id)
        return ProductResponse.from_domain(product)
