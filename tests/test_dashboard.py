from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models import Category, User
from schemas import BudgetIn, ExpenseIn
from services import BudgetService, DashboardService, ExpenseService

TODAY = date(2025, 3, 15)


def make_dashboard():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = SessionLocal()

    user = User(username="alice", email="alice@example.com", password_hash="x")
    food = Category(name="Food", color="#28a745")
    travel = Category(name="Travel", color="#6610f2")
    session.add_all([user, food, travel])
    session.commit()

    expenses = ExpenseService(session, user)
    for amount, spent_on, category, note in (
        ("60.00", date(2025, 3, 2), food, "Groceries"),
        ("15.00", date(2025, 3, 12), food, "Lunch"),
        ("25.00", date(2025, 3, 14), travel, "Taxi"),
        ("40.00", date(2025, 2, 10), food, "Dinner"),
        ("30.00", date(2025, 1, 10), travel, "Bus pass"),
    ):
        expenses.create(
            ExpenseIn(
                amount=Decimal(amount),
                description=note,
                date=spent_on,
                category_id=category.id,
            )
        )

    budgets = BudgetService(session, user)
    budgets.create(
        BudgetIn(amount=Decimal("50.00"), category_id=food.id, month=3, year=2025)
    )
    budgets.create(
        BudgetIn(amount=Decimal("100.00"), category_id=travel.id, month=3, year=2025)
    )
    budgets.create(
        BudgetIn(amount=Decimal("70.00"), category_id=food.id, month=4, year=2025)
    )
    return DashboardService(session, user, today=TODAY)


def test_summary_and_overview() -> None:
    dashboard = make_dashboard()

    summary = dashboard.summary()
    assert summary["current_month_expenses"] == Decimal("100.00")
    assert summary["total_expenses"] == Decimal("170.00")
    assert summary["current_month_budget"] == Decimal("150.00")
    assert summary["total_categories"] == 2
    assert [e.description for e in summary["recent_expenses"]][:2] == [
        "Taxi",
        "Lunch",
    ]
    assert [
        (row["category"].name, row["amount"]) for row in summary["expenses_by_category"]
    ] == [("Food", Decimal("75.00")), ("Travel", Decimal("25.00"))]

    overview = dashboard.overview()
    assert overview["total_expenses"] == 5
    assert overview["total_budgets"] == 3
    assert overview["current_month_spent"] == Decimal("100.00")
    assert overview["budget_usage_percent"] == pytest.approx(66.67)


def test_recent_activity_covers_last_week() -> None:
    activity = make_dashboard().recent_activity()
    assert [e.description for e in activity["last_week_expenses"]] == [
        "Taxi",
        "Lunch",
    ]
    assert activity["last_week_total"] == Decimal("40.00")
    assert len(activity["recent_expenses"]) == 5


def test_budget_status_flags_overspending() -> None:
    status = {row["category"]: row for row in make_dashboard().budget_status()}

    food = status["Food"]
    assert food["spent_amount"] == Decimal("75.00")
    assert food["remaining_amount"] == Decimal("-25.00")
    assert food["usage_percentage"] == 150.0
    assert food["is_over_budget"] is True

    travel = status["Travel"]
    assert travel["remaining_amount"] == Decimal("75.00")
    assert travel["usage_percentage"] == 25.0
    assert travel["is_over_budget"] is False


def test_trends_and_breakdown() -> None:
    dashboard = make_dashboard()

    trends = dashboard.trends(3)
    assert trends["monthly_spending"] == {
        "2025-01": Decimal("30.00"),
        "2025-02": Decimal("40.00"),
        "2025-03": Decimal("100.00"),
    }
    assert trends["average_monthly_spending"] == Decimal("56.67")

    breakdown = dashboard.category_breakdown()
    assert breakdown["category_amounts"] == {
        "Food": Decimal("75.00"),
        "Travel": Decimal("25.00"),
    }
    assert breakdown["total_amount"] == Decimal("100.00")
    assert breakdown["category_percentages"] == {"Food": 75.0, "Travel": 25.0}

    monthly = dashboard.monthly(2025)
    assert monthly["March"] == Decimal("100.00")
    assert len(monthly) == 12

    with pytest.raises(ValueError):
        dashboard.trends(0)
