"""
Maintenance commands.

    python cli.py create-admin EMAIL PASSWORD [--name NAME]
    python cli.py seed
    python cli.py run-schedules

`run-schedules` is meant for cron, once a minute: schedules only fire on the
exact HH:MM they are set to.
"""
import argparse
import sys

from pydantic import ValidationError

import models  # registers every mapper before the first query
from core.config import get_settings
from core.database import Base, SessionLocal, engine
from core.exceptions import AppError
from core.logging_config import setup_logging
from schemas.auth_schemas import CreateAdminRequest
from services.auth_service import AuthService
from services.schedule_service import ScheduleRunner
from services.seed_service import SeedService
from utils.logger import get_logger

logger = get_logger(__name__)


def create_admin(args) -> int:
    try:
        request = CreateAdminRequest(email=args.email, password=args.password, full_name=args.name)
    except ValidationError as e:
        for error in e.errors():
            print(f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}", file=sys.stderr)
        return 1

    with SessionLocal() as db:
        user = AuthService.create_admin(request, db)
    print(f"Admin {user.email} created (id {user.id})")
    return 0


def seed(args) -> int:
    with SessionLocal() as db:
        result = SeedService.seed(db)
    print(f"Seeded {result['delivery_locations']} delivery locations, "
          f"{result['categories_created']} new categories")
    return 0


def run_schedules(args) -> int:
    with SessionLocal() as db:
        processed = ScheduleRunner(db).run()
    for item in processed:
        print(f"{item['email']} ({item['frequency']}): {item['orders_archived']} order(s) archived")
    print(f"Processed {len(processed)} schedule(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cli.py", description="Shop maintenance commands")
    commands = parser.add_subparsers(dest="command", required=True)

    admin = commands.add_parser("create-admin", help="create an admin account")
    admin.add_argument("email")
    admin.add_argument("password")
    admin.add_argument("--name", default="", help="full name")
    admin.set_defaults(handler=create_admin)

    seed_cmd = commands.add_parser("seed", help="load delivery locations and starter categories")
    seed_cmd.set_defaults(handler=seed)

    runner = commands.add_parser("run-schedules", help="fire due schedules")
    runner.set_defaults(handler=run_schedules)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(log_level=settings.LOG_LEVEL, log_dir=settings.LOG_DIR)
    Base.metadata.create_all(bind=engine)

    try:
        return args.handler(args)
    except AppError as e:
        logger.error(f"{args.command} failed: {e.message}")
        print(e.message, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
