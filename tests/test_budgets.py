from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models import Category, Role, User
from schemas import BudgetIn, ExpenseIn
from services import (
    DUPLICATE_BUDGET,
    BudgetService,
    ExpenseService,
    NotAuthorizedError,
    NotFoundError,
)


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def add_user(session, username: str, role: Role = Role.user) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash="not-a-hash",
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def add_category(session, name: str) -> Category:
    category = Category(name=name, color="#28a745", is_default=False)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def test_spent_and_remaining_for_monthly_budget() -> None:
    session = make_session()
    alice = add_user(session, "alice")
    food = add_category(session, "Food")
    travel = add_category(session, "Travel")

    budgets = BudgetService(session, alice)
    budget = budgets.create(
        BudgetIn(amount=Decimal("1000.00"), category_id=food.id, month=3, year=2025)
    )

    expenses = ExpenseService(session, alice)
    for amount, spent_on, category in (
        ("300.00", date(2025, 3, 1), food),
        ("100.00", date(2025, 3, 31), food),
        ("55.00", date(2025, 4, 1), food),
        ("70.00", date(2025, 3, 10), travel),
    ):
        expenses.create(
            ExpenseIn(
                amount=Decimal(amount),
                description=None,
                date=spent_on,
                category_id=category.id,
            )
        )

    assert budgets.spent_for_budget(budget.id) == Decimal("400.00")
    assert budgets.remaining_for_category(food.id, 2025, 3) == Decimal("600.00")
    assert budgets.total_for_month(2025, 3) == Decimal("1000.00")


def test_remaining_is_zero_without_budget() -> None:
    session = make_session()
    alice = add_user(session, "alice")
    food = add_category(session, "Food")

    budgets = BudgetService(session, alice)
    assert budgets.remaining_for_category(food.id, 2025, 3) == Decimal("0.00")

    with pytest.raises(NotFoundError):
        budgets.remaining_for_category(999, 2025, 3)


def test_duplicate_budget_slice_is_rejected() -> None:
    session = make_session()
    alice = add_user(session, "alice")
    bob = add_user(session, "bob")
    food = add_category(session, "Food")
    data = BudgetIn(amount=Decimal("200.00"), category_id=food.id, month=5, year=2025)

    BudgetService(session, alice).create(data)
    with pytest.raises(ValueError, match=DUPLICATE_BUDGET):
        BudgetService(session, alice).create(data)

    # other users own their own slices
    BudgetService(session, bob).create(data)
    assert BudgetService(session, alice).count() == 1
    assert BudgetService(session, bob).count() == 1


def test_duplicate_slice_from_concurrent_writer_is_reported(monkeypatch) -> None:
    session = make_session()
    alice = add_user(session, "alice")
    food = add_category(session, "Food")
    data = BudgetIn(amount=Decimal("200.00"), category_id=food.id, month=5, year=2025)

    budgets = BudgetService(session, alice)
    budgets.create(data)

    # simulate losing the check-then-insert race
    monkeypatch.setattr(budgets, "find_slice", lambda *args: None)
    with pytest.raises(ValueError, match=DUPLICATE_BUDGET):
        budgets.create(data)
    assert budgets.count() == 1


def test_update_may_keep_own_slice_but_not_take_another() -> None:
    session = make_session()
    alice = add_user(session, "alice")
    food = add_category(session, "Food")
    budgets = BudgetService(session, alice)
    may = budgets.create(
        BudgetIn(amount=Decimal("200.00"), category_id=food.id, month=5, year=2025)
    )
    budgets.create(
        BudgetIn(amount=Decimal("250.00"), category_id=food.id, month=6, year=2025)
    )

    updated = budgets.update(
        may.id,
        BudgetIn(amount=Decimal("220.00"), category_id=food.id, month=5, year=2025),
    )
    assert updated.amount == Decimal("220.00")

    with pytest.raises(ValueError, match=DUPLICATE_BUDGET):
        budgets.update(
            may.id,
            BudgetIn(
                amount=Decimal("220.00"), category_id=food.id, month=6, year=2025
            ),
        )


def test_foreign_budget_is_hidden_from_other_users() -> None:
    session = make_session()
    alice = add_user(session, "alice")
    mallory = add_user(session, "mallory")
    admin = add_user(session, "root", role=Role.admin)
    food = add_category(session, "Food")

    budget = BudgetService(session, alice).create(
        BudgetIn(amount=Decimal("100.00"), category_id=food.id, month=1, year=2025)
    )
    ExpenseService(session, alice).create(
        ExpenseIn(
            amount=Decimal("40.00"),
            description="Lunch",
            date=date(2025, 1, 3),
            category_id=food.id,
        )
    )

    other = BudgetService(session, mallory)
    assert other.spent_for_budget(budget.id) == Decimal("0.00")
    with pytest.raises(NotAuthorizedError):
        other.get(budget.id)
    with pytest.raises(NotAuthorizedError):
        other.update(
            budget.id,
            BudgetIn(amount=Decimal("1.00"), category_id=food.id, month=1, year=2025),
        )
    with pytest.raises(NotAuthorizedError):
        other.delete(budget.id)

    assert BudgetService(session, admin).get(budget.id).id == budget.id
    with pytest.raises(NotFoundError):
        other.spent_for_budget(999)


def test_listings_are_scoped_and_ordered() -> None:
    session = make_session()
    alice = add_user(session, "alice")
    bob = add_user(session, "bob")
    food = add_category(session, "Food")
    travel = add_category(session, "Travel")

    budgets = BudgetService(session, alice)
    for category, month, year in (
        (food, 1, 2024),
        (food, 3, 2025),
        (travel, 3, 2025),
        (food, 2, 2025),
    ):
        budgets.create(
            BudgetIn(
                amount=Decimal("10.00"),
                category_id=category.id,
                month=month,
                year=year,
            )
        )
    BudgetService(session, bob).create(
        BudgetIn(amount=Decimal("10.00"), category_id=food.id, month=3, year=2025)
    )

    periods = [(b.year, b.month) for b in budgets.list_for_user()]
    assert periods == [(2025, 3), (2025, 3), (2025, 2), (2024, 1)]
    assert [b.month for b in budgets.list_for_year(2025)] == [2, 3, 3]
    assert len(budgets.list_for_month(2025, 3)) == 2
    assert len(budgets.list_all()) == 5
    assert budgets.stats(date(2025, 3, 15)) == {
        "total_budgets": 4,
        "current_month_budget": Decimal("20.00"),
    }
