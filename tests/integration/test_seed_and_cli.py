import pytest

import cli
from models.categories import Category
from models.delivery_locations import DeliveryLocation
from models.users import User
from services.seed_service import DELIVERY_LOCATIONS, SeedService


@pytest.fixture
def cli_session(session, session_factory, monkeypatch):
    """Point the CLI at the test database."""
    monkeypatch.setattr(cli, "SessionLocal", session_factory)
    return session


def test_seed_is_idempotent(session):
    SeedService.seed(session)
    first_categories = session.query(Category).count()

    result = SeedService.seed(session)

    assert result["categories_created"] == 0
    assert session.query(Category).count() == first_categories
    assert session.query(DeliveryLocation).count() == len(DELIVERY_LOCATIONS)
    nairobi = session.query(DeliveryLocation).filter(DeliveryLocation.town == "Nairobi").one()
    assert nairobi.delivery_fee == 300


def test_cli_create_admin(cli_session, capsys):
    assert cli.main(["create-admin", "boss@example.com", "Secret123", "--name", "Boss"]) == 0

    user = cli_session.query(User).filter(User.email == "boss@example.com").one()
    assert user.role == "admin"
    assert user.full_name == "Boss"
    assert "boss@example.com" in capsys.readouterr().out


def test_cli_create_admin_duplicate(cli_session):
    cli.main(["create-admin", "boss@example.com", "Secret123"])

    assert cli.main(["create-admin", "boss@example.com", "Secret123"]) == 1


def test_cli_create_admin_weak_password(cli_session, capsys):
    assert cli.main(["create-admin", "boss@example.com", "short"]) == 1
    assert "password" in capsys.readouterr().err


def test_cli_seed_and_run_schedules(cli_session, capsys):
    assert cli.main(["seed"]) == 0
    assert cli.main(["run-schedules"]) == 0

    out = capsys.readouterr().out
    assert "delivery locations" in out
    assert "Processed 0 schedule(s)" in out
