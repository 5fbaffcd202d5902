from typing import List

from fastapi import APIRouter, Depends, Response, status
from utils.deps import db_dependency, admin_dependency, verify_cron_or_admin
from schemas.common import ApiResponse, ok
from schemas.schedule_schemas import ScheduleOut, ScheduleRequest, TriggerResult
from services.schedule_service import ScheduleRunner, ScheduleService


router = APIRouter(
    prefix="/jobs",
    tags=["jobs"]
)


@router.get("", response_model=ApiResponse[List[ScheduleOut]])
async def list_schedules(admin: admin_dependency, db: db_dependency):
    return ok(ScheduleService.list_schedules(db))


@router.post("", response_model=ApiResponse[ScheduleOut])
async def save_schedule(body: ScheduleRequest, response: Response, admin: admin_dependency, db: db_dependency):
    """Create a schedule, or update the existing one for the same email."""
    schedule, is_update = ScheduleService.save_schedule(db, body)
    if not is_update:
        response.status_code = status.HTTP_201_CREATED
    return ok(schedule, "Schedule updated" if is_update else "Schedule created")


@router.post("/trigger", response_model=ApiResponse[TriggerResult], dependencies=[Depends(verify_cron_or_admin)])
def trigger(db: db_dependency):
    processed = ScheduleRunner(db).run()
    return ok({"processed": processed}, f"Processed {len(processed)} schedule(s)")


@router.get("/{schedule_id}", response_model=ApiResponse[ScheduleOut])
async def show_schedule(schedule_id: int, admin: admin_dependency, db: db_dependency):
    return ok(ScheduleService.get_schedule(db, schedule_id))


@router.put("/{schedule_id}", response_model=ApiResponse[ScheduleOut])
async def update_schedule(schedule_id: int, body: ScheduleRequest, admin: admin_dependency, db: db_dependency):
    return ok(ScheduleService.update_schedule(db, schedule_id, body), "Schedule updated")


@router.post("/{schedule_id}/toggle", response_model=ApiResponse[ScheduleOut])
async def toggle_schedule(schedule_id: int, admin: admin_dependency, db: db_dependency):
    schedule = ScheduleService.toggle(db, schedule_id)
    return ok(schedule, "Schedule enabled" if schedule.is_enabled else "Schedule disabled")


@router.delete("/{schedule_id}", response_model=ApiResponse[None])
async def delete_schedule(schedule_id: int, admin: admin_dependency, db: db_dependency):
    ScheduleService.delete_schedule(db, schedule_id)
    return ok(message="Schedule deleted")
