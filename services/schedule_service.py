import calendar
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError
from models.schedules import Schedule
from schemas.schedule_schemas import ScheduleRequest
from services.order_service import OrderService
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIME = "08:00"

FIXED_INTERVALS = {
    "daily": timedelta(days=1),
    "weekly": timedelta(weeks=1),
    "bi-weekly": timedelta(weeks=2),
}

MONTH_INTERVALS = {
    "monthly": 1,
    "quarterly": 3,
}


def add_months(moment: datetime, months: int) -> datetime:
    """Same day-of-month `months` later, clamped to the last day of the target month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def next_due(frequency: str, last_run: datetime) -> datetime:
    if frequency in FIXED_INTERVALS:
        return last_run + FIXED_INTERVALS[frequency]
    return add_months(last_run, MONTH_INTERVALS[frequency])


def is_due(schedule: Schedule, now: datetime) -> bool:
    """
    A schedule fires when the clock reads exactly its HH:MM and a full
    frequency interval has passed since it last ran (or it never ran).
    """
    if now.strftime("%H:%M") != schedule.scheduled_time:
        return False

    if schedule.last_run_at is None:
        return True

    return now >= next_due(schedule.frequency, schedule.last_run_at)


class ScheduleService:

    @staticmethod
    def list_schedules(db: Session) -> List[Schedule]:
        return db.query(Schedule).order_by(Schedule.created_at.desc(), Schedule.id.desc()).all()

    @staticmethod
    def get_schedule(db: Session, schedule_id: int) -> Schedule:
        schedule = db.query(Schedule).filter(Schedule.id == schedule_id).first()
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    @staticmethod
    def save_schedule(db: Session, request: ScheduleRequest) -> Tuple[Schedule, bool]:
        """Create the schedule for this email or update the existing one. Returns (schedule, is_update)."""
        email = request.email.lower()
        schedule = db.query(Schedule).filter(Schedule.email == email).first()
        is_update = schedule is not None

        if schedule is None:
            schedule = Schedule(email=email)
            db.add(schedule)

        schedule.frequency = request.frequency
        schedule.scheduled_time = request.scheduled_time or DEFAULT_TIME
        schedule.is_enabled = True if request.is_enabled is None else request.is_enabled

        db.commit()
        db.refresh(schedule)

        logger.info(
            "Scheduled report saved",
            extra={"email": email, "frequency": schedule.frequency, "is_update": is_update}
        )
        return schedule, is_update

    @staticmethod
    def update_schedule(db: Session, schedule_id: int, request: ScheduleRequest) -> Schedule:
        schedule = ScheduleService.get_schedule(db, schedule_id)

        email = request.email.lower()
        if db.query(Schedule).filter(Schedule.email == email, Schedule.id != schedule_id).first():
            raise ConflictError("Another schedule already uses this email", field="email")

        schedule.email = email
        schedule.frequency = request.frequency
        if request.scheduled_time is not None:
            schedule.scheduled_time = request.scheduled_time
        if request.is_enabled is not None:
            schedule.is_enabled = request.is_enabled

        db.commit()
        db.refresh(schedule)

        logger.info("Scheduled report updated", extra={"schedule_id": schedule_id, "email": schedule.email})
        return schedule

    @staticmethod
    def delete_schedule(db: Session, schedule_id: int):
        schedule = ScheduleService.get_schedule(db, schedule_id)
        email = schedule.email
        db.delete(schedule)
        db.commit()
        logger.info("Scheduled report deleted", extra={"schedule_id": schedule_id, "email": email})

    @staticmethod
    def toggle(db: Session, schedule_id: int) -> Schedule:
        schedule = ScheduleService.get_schedule(db, schedule_id)
        schedule.is_enabled = not schedule.is_enabled
        db.commit()
        db.refresh(schedule)

        logger.info(
            "Scheduled report status toggled",
            extra={"schedule_id": schedule_id, "is_enabled": schedule.is_enabled}
        )
        return schedule


class ScheduleRunner:
    """Evaluates enabled schedules against the clock; invoked by cron."""

    def __init__(self, db: Session):
        self.db = db

    def run(self, now: Optional[datetime] = None) -> List[dict]:
        now = now or datetime.now()
        schedules = self.db.query(Schedule).filter(Schedule.is_enabled == True).all()

        if not schedules:
            logger.info("No active scheduled reports found")
            return []

        processed = []
        for schedule in schedules:
            if not is_due(schedule, now):
                continue

            archived = OrderService.archive_settled_orders(self.db, now)

            schedule.last_run_at = now
            schedule.next_run_at = next_due(schedule.frequency, now)
            self.db.commit()

            logger.info(
                "Schedule executed",
                extra={"schedule_id": schedule.id, "frequency": schedule.frequency, "orders_archived": archived}
            )
            processed.append({
                "id": schedule.id,
                "email": schedule.email,
                "frequency": schedule.frequency,
                "executed_at": now,
                "orders_archived": archived,
            })

        logger.info(f"Cron execution completed. Processed {len(processed)} schedule(s)")
        return processed
