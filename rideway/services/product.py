import logging

from rideway.db.repositories import product as product_repo
from rideway.db.session import unit_of_work
from rideway.schemas.product import ProductRead
from rideway.schemas.response import ErrorCode, ServiceResult, fail, ok

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND = "Product not found"


def serialize_product(product) -> dict:
    return ProductRead.model_validate(product).model_dump()


class ProductService:
    """CRUD over the service products offered in the marketplace; deletes are soft."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def create_product(self, product_data: dict) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            product = await product_repo.create_product(db, product_data)
        logger.info("Product %s created", product.id)
        return ok(serialize_product(product))

    async def get_products(self) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            products = await product_repo.get_active_products(db)
            return ok([serialize_product(product) for product in products])

    async def get_product_by_id(self, product_id: str) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            product = await product_repo.get_product_by_id(db, product_id)
            if product is None:
                return fail(PRODUCT_NOT_FOUND, ErrorCode.NOT_FOUND)
            return ok(serialize_product(product))

    async def update_product(self, product_id: str, update_data: dict) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            product = await product_repo.get_product_by_id(db, product_id, active_only=False)
            if product is None:
                return fail(PRODUCT_NOT_FOUND, ErrorCode.NOT_FOUND)
            product = await product_repo.update_product(db, product, **update_data)
        return ok(serialize_product(product))

    async def delete_product(self, product_id: str) -> ServiceResult:
        async with unit_of_work(self.session_factory) as db:
            product = await product_repo.get_product_by_id(db, product_id, active_only=False)
            if product is None:
                return fail(PRODUCT_NOT_FOUND, ErrorCode.NOT_FOUND)
            await product_repo.update_product(db, product, is_active=False)
        logger.info("Product %s deactivated", product_id)
        return ok({"message": "Product deleted successfully"})
