from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from rideway.db.models.product import Product


async def create_product(db: AsyncSession, product_data: dict) -> Product:
    product = Product(**product_data)
    db.add(product)
    await db.flush()
    await db.refresh(product)
    return product


async def get_active_products(db: AsyncSession) -> List[Product]:
    result = await db.execute(
        select(Product).where(Product.is_active == True).order_by(Product.created_at)  # noqa: E712
    )
    return list(result.scalars().all())


async def get_product_by_id(db: AsyncSession, product_id: str, active_only: bool = True) -> Optional[Product]:
    query = select(Product).where(Product.id == product_id)
    if active_only:
        query = query.where(Product.is_active == True)  # noqa: E712
    result = await db.execute(query)
    return result.scalars().first()


async def update_product(db: AsyncSession, product: Product, **fields) -> Product:
    for name, value in fields.items():
        setattr(product, name, value)
    await db.flush()
    await db.refresh(product)
    return product
