from typing import List

from fastapi import APIRouter, status
from utils.deps import db_dependency, admin_dependency
from schemas.common import ApiResponse, ok
from schemas.catalog_schemas import DeliveryLocationOut, DeliveryLocationRequest
from services.catalog_service import DeliveryLocationService


router = APIRouter(
    prefix="/delivery-locations",
    tags=["delivery-locations"]
)


@router.get("", response_model=ApiResponse[List[DeliveryLocationOut]])
async def list_locations(admin: admin_dependency, db: db_dependency):
    return ok(DeliveryLocationService.list_locations(db))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[DeliveryLocationOut])
async def create_location(body: DeliveryLocationRequest, admin: admin_dependency, db: db_dependency):
    return ok(DeliveryLocationService.create_location(db, body), "Delivery location created")


@router.put("/{location_id}", response_model=ApiResponse[DeliveryLocationOut])
async def update_location(location_id: int, body: DeliveryLocationRequest, admin: admin_dependency,
                          db: db_dependency):
    return ok(DeliveryLocationService.update_location(db, location_id, body), "Delivery location updated")
