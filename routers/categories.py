from fastapi import APIRouter, Query, status
from utils.deps import db_dependency, admin_dependency
from schemas.common import ApiResponse, Page, ok, paginate
from schemas.catalog_schemas import CategoryOut, CategoryRequest
from services.catalog_service import CategoryService


router = APIRouter(
    prefix="/categories",
    tags=["categories"]
)


@router.get("", response_model=ApiResponse[Page[CategoryOut]])
async def list_categories(admin: admin_dependency, db: db_dependency,
                          page: int = Query(1, ge=1), per_page: int = Query(10, ge=1, le=100)):
    return ok(paginate(CategoryService.list_categories(db), page, per_page))


@router.get("/{category_id}", response_model=ApiResponse[CategoryOut])
async def show_category(category_id: int, admin: admin_dependency, db: db_dependency):
    return ok(CategoryService.get_category(db, category_id))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[CategoryOut])
async def create_category(body: CategoryRequest, admin: admin_dependency, db: db_dependency):
    return ok(CategoryService.create_category(db, body), "Category created")


@router.put("/{category_id}", response_model=ApiResponse[CategoryOut])
async def update_category(category_id: int, body: CategoryRequest, admin: admin_dependency, db: db_dependency):
    return ok(CategoryService.update_category(db, category_id, body), "Category updated")


@router.delete("/{category_id}", response_model=ApiResponse[None])
async def delete_category(category_id: int, admin: admin_dependency, db: db_dependency):
    CategoryService.delete_category(db, category_id)
    return ok(message="Category deleted")
