from fastapi import APIRouter, Depends, status
from rideway.api.deps import get_current_user, get_product_service
from rideway.api.responses import to_json
from rideway.schemas.product import ProductCreate, ProductUpdate
from rideway.services.product import ProductService

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.post("")
async def create_product(data: ProductCreate, products: ProductService = Depends(get_product_service)):
    return to_json(await products.create_product(data.model_dump()), status.HTTP_201_CREATED)


@router.get("")
async def get_products(products: ProductService = Depends(get_product_service)):
    return to_json(await products.get_products())


@router.get("/{product_id}")
async def get_product(product_id: str, products: ProductService = Depends(get_product_service)):
    return to_json(await products.get_product_by_id(product_id))


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    data: ProductUpdate,
    products: ProductService = Depends(get_product_service),
):
    return to_json(await products.update_product(product_id, data.model_dump(exclude_none=True)))


@router.delete("/{product_id}")
async def delete_product(product_id: str, products: ProductService = Depends(get_product_service)):
    return to_json(await products.delete_product(product_id))
