from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from database import Base
from models import Budget, Expense, Role, User
from services import (
    DEFAULT_CATEGORIES,
    DEMO_USERS,
    SAMPLE_BUDGETS,
    SAMPLE_EXPENSES,
    SeedService,
)

TODAY = date(2025, 3, 31)


def test_seed_all_then_rerun_creates_nothing() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        seeder = SeedService(session, today=TODAY)
        assert seeder.seed_all() == {
            "categories": len(DEFAULT_CATEGORIES),
            "users": len(DEMO_USERS),
            "expenses": len(SAMPLE_EXPENSES),
            "budgets": len(SAMPLE_BUDGETS),
        }
        assert seeder.seed_all() == {
            "categories": 0,
            "users": 0,
            "expenses": 0,
            "budgets": 0,
        }

        admin = session.scalar(select(User).where(User.username == "admin"))
        assert admin.role == Role.admin


def test_sample_dates_follow_today() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        SeedService(session, today=TODAY).seed_all()

        big = session.scalar(
            select(Expense).where(Expense.description == "Big shopping")
        )
        # two months back from March 31 clamps to January 31, then 12 days earlier
        assert big.date == date(2025, 1, 19)
        assert big.amount == Decimal("300.00")

        periods = {(b.year, b.month) for b in session.scalars(select(Budget))}
        assert periods == {(2025, 3), (2025, 4)}


def test_expenses_need_users_and_categories() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        seeder = SeedService(session, today=TODAY)
        with pytest.raises(ValueError, match="Initialize users first"):
            seeder.seed_expenses()

        seeder.seed_users()
        with pytest.raises(ValueError, match="Initialize categories first"):
            seeder.seed_budgets()


def test_clear_keeps_users_and_categories() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        seeder = SeedService(session, today=TODAY)
        seeder.seed_all()

        assert seeder.clear() == {
            "expenses": len(SAMPLE_EXPENSES),
            "budgets": len(SAMPLE_BUDGETS),
        }
        assert seeder.status() == {
            "users": len(DEMO_USERS),
            "categories": len(DEFAULT_CATEGORIES),
            "expenses": 0,
            "budgets": 0,
        }
