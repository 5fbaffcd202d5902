from typing import List

from fastapi import APIRouter, File, Query, UploadFile, status
from utils.deps import admin_dependency, product_dependency
from schemas.common import ApiResponse, Page, ok, paginate
from schemas.catalog_schemas import ProductOut, ProductRequest, ProductUpdateRequest


router = APIRouter(
    prefix="/products",
    tags=["products"]
)


@router.get("", response_model=ApiResponse[Page[ProductOut]])
async def list_products(admin: admin_dependency, products: product_dependency,
                        page: int = Query(1, ge=1), per_page: int = Query(10, ge=1, le=100)):
    return ok(paginate(products.list_products(), page, per_page))


@router.get("/{product_id}", response_model=ApiResponse[ProductOut])
async def show_product(product_id: int, admin: admin_dependency, products: product_dependency):
    return ok(products.get_product(product_id))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[ProductOut])
async def create_product(body: ProductRequest, admin: admin_dependency, products: product_dependency):
    return ok(products.create_product(body), "Product created")


@router.put("/{product_id}", response_model=ApiResponse[ProductOut])
async def update_product(product_id: int, body: ProductUpdateRequest, admin: admin_dependency,
                         products: product_dependency):
    return ok(products.update_product(product_id, body), "Product updated")


@router.post("/{product_id}/images", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[ProductOut])
async def upload_images(product_id: int, admin: admin_dependency, products: product_dependency,
                        images: List[UploadFile] = File(...)):
    """Attach up to three photos; each is resized and stored as WEBP."""
    files = [(upload.filename, await upload.read()) for upload in images]
    return ok(products.add_images(product_id, files), "Images uploaded")


@router.delete("/{product_id}", response_model=ApiResponse[None])
async def delete_product(product_id: int, admin: admin_dependency, products: product_dependency):
    products.delete_product(product_id)
    return ok(message="Product deleted")
