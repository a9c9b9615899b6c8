"""ProductRepository — concrete implementation of ProductRepositoryProtocol.

Transaction ownership: the CALLER commits or rolls back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rb_product.domain.models import Product, ProductFilter

_COLUMNS = """
    id, name, code, sku, category, description, unit,
    price, stock, picture, active, created_at, updated_at
"""

_UPDATABLE = {
    "name", "code", "sku", "category", "description", "unit",
    "price", "stock", "picture", "active",
}

_GET_BY_ID_SQL = text(f"SELECT {_COLUMNS} FROM products WHERE id = :id")

_GET_BY_CODE_SQL = text(f"SELECT {_COLUMNS} FROM products WHERE code = :code")

_INSERT_SQL = text(f"""
    INSERT INTO products
        (id, name, code, sku, category, description, unit, price, stock, picture, active)
    VALUES
        (:id, :name, :code, :sku, :category, :description, :unit, :price, :stock, :picture, :active)
    RETURNING {_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM products WHERE id = :id RETURNING id")

_CATEGORIES_SQL = text(
    "SELECT DISTINCT category FROM products WHERE category <> '' ORDER BY category"
)

_DECREMENT_STOCK_SQL = text(f"""
    UPDATE products
    SET stock = stock - :quantity,
        updated_at = NOW()
    WHERE id = :id AND stock >= :quantity
    RETURNING {_COLUMNS}
""")


def _row_to_product(row: Any) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        code=row.code,
        sku=row.sku,
        category=row.category,
        description=row.description,
        unit=row.unit,
        price=row.price,
        stock=row.stock,
        picture=row.picture,
        active=row.active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class ProductRepository:
    async def get_by_id(self, db: AsyncSession, product_id: str) -> Product | None:
        row = (await db.execute(_GET_BY_ID_SQL, {"id": product_id})).fetchone()
        return _row_to_product(row) if row else None

    async def get_by_code(self, db: AsyncSession, code: str) -> Product | None:
        row = (await db.execute(_GET_BY_CODE_SQL, {"code": code})).fetchone()
        return _row_to_product(row) if row else None

    async def insert(self, db: AsyncSession, product: Product) -> Product:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": product.id,
                "name": product.name,
                "code": product.code,
                "sku": product.sku,
                "category": product.category,
                "description": product.description,
                "unit": product.unit,
                "price": product.price,
                "stock": product.stock,
                "picture": product.picture,
                "active": product.active,
            },
        )
        return _row_to_product(result.fetchone())

    async def update_fields(
        self, db: AsyncSession, product_id: str, fields: dict[str, Any]
    ) -> Product | None:
        columns = [c for c in fields if c in _UPDATABLE]
        if not columns:
            return await self.get_by_id(db, product_id)
        assignments = ", ".join(f"{c} = :{c}" for c in columns)
        sql = text(
            f"UPDATE products SET {assignments}, updated_at = NOW()"
            f" WHERE id = :id RETURNING {_COLUMNS}"
        )
        params = {c: fields[c] for c in columns}
        params["id"] = product_id
        row = (await db.execute(sql, params)).fetchone()
        return _row_to_product(row) if row else None

    async def delete(self, db: AsyncSession, product_id: str) -> bool:
        return (await db.execute(_DELETE_SQL, {"id": product_id})).fetchone() is not None

    async def list_products(
        self, db: AsyncSession, flt: ProductFilter, offset: int, limit: int
    ) -> tuple[list[Product], int]:
        conditions: list[str] = []
        params: dict[str, Any] = {}
        if flt.category:
            conditions.append("category = :category")
            params["category"] = flt.category
        if flt.active is not None:
            conditions.append("active = :active")
            params["active"] = flt.active
        if flt.search:
            conditions.append(
                "(name ILIKE :pattern OR code ILIKE :pattern OR description ILIKE :pattern)"
            )
            params["pattern"] = f"%{flt.search.strip()}%"
        clause = " AND ".join(conditions) if conditions else "TRUE"
        rows = (
            await db.execute(
                text(
                    f"SELECT {_COLUMNS} FROM products WHERE {clause}"
                    " ORDER BY name ASC, id ASC LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": limit, "offset": offset},
            )
        ).fetchall()
        total = (
            await db.execute(text(f"SELECT COUNT(*) FROM products WHERE {clause}"), params)
        ).scalar_one()
        return [_row_to_product(r) for r in rows], int(total)

    async def decrement_stock(
        self, db: AsyncSession, product_id: str, quantity: int
    ) -> Product | None:
        """Atomic conditional decrement. None when stock < quantity or product missing."""
        row = (
            await db.execute(_DECREMENT_STOCK_SQL, {"id": product_id, "quantity": quantity})
        ).fetchone()
        return _row_to_product(row) if row else None

    async def distinct_categories(self, db: AsyncSession) -> list[str]:
        return [row.category for row in (await db.execute(_CATEGORIES_SQL)).fetchall()]
