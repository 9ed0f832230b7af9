from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from metrics import (
    ZERO,
    average,
    is_over_budget,
    percentage_breakdown,
    to_money,
    usage_percentage,
)
from models import Budget, Category, Expense, Role, User
from periods import (
    MONTH_NAMES,
    Period,
    add_months,
    current_month,
    last_days,
    local_today,
    month_period,
    shift_month,
    trailing_months,
)
from schemas import BudgetIn, CategoryIn, ExpenseIn, LoginIn, RegisterIn
from security import (
    TokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#007bff"

DEFAULT_CATEGORIES = (
    ("Food", "Meals, groceries, dining out", "#28a745"),
    ("Transportation", "Gas, public transport, car maintenance", "#007bff"),
    ("Entertainment", "Movies, games, hobbies", "#ffc107"),
    ("Healthcare", "Medical expenses, pharmacy", "#dc3545"),
    ("Shopping", "Clothes, electronics, misc items", "#6f42c1"),
    ("Bills", "Utilities, rent, subscriptions", "#fd7e14"),
    ("Education", "Books, courses, training", "#17a2b8"),
    ("Travel", "Vacation, trips, accommodation", "#6610f2"),
)

DUPLICATE_BUDGET = "Budget already exists for this category and period"


class NotFoundError(ValueError):
    pass


class NotAuthorizedError(ValueError):
    pass


class AuthenticationError(ValueError):
    pass


class Access(str, Enum):
    granted = "granted"
    denied = "denied"


def check_owner(record: Expense | Budget, user: Optional[User]) -> Access:
    if user is None or record.user_id != user.id:
        return Access.denied
    return Access.granted


def can_view(record: Expense | Budget, user: User) -> bool:
    return check_owner(record, user) == Access.granted or user.is_admin


@dataclass(frozen=True)
class CategoryTotal:
    category: Category
    amount: Decimal


class CategoryService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[Category]:
        return self.session.scalars(select(Category).order_by(Category.name)).all()

    def list_default(self) -> list[Category]:
        return [c for c in self.list_all() if c.is_default]

    def list_custom(self) -> list[Category]:
        return [c for c in self.list_all() if not c.is_default]

    def count(self) -> int:
        return self.session.execute(select(func.count(Category.id))).scalar_one()

    def get(self, category_id: int) -> Category:
        category = self.session.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    def find_by_name(self, name: str) -> Optional[Category]:
        return self.session.scalar(
            select(Category).where(func.lower(Category.name) == name.strip().lower())
        )

    def create(self, data: CategoryIn) -> Category:
        if self.find_by_name(data.name):
            raise ValueError("Category name already exists")
        category = Category(
            name=data.name.strip(),
            description=data.description,
            color=data.color or DEFAULT_COLOR,
            is_default=False,
        )
        self.session.add(category)
        self.session.commit()
        self.session.refresh(category)
        logger.info(f"category_created: id={category.id} name={category.name}")
        return category

    def update(self, category_id: int, data: CategoryIn) -> Category:
        category = self.get(category_id)
        existing = self.find_by_name(data.name)
        if existing and existing.id != category_id:
            raise ValueError("Category name already exists")
        category.name = data.name.strip()
        category.description = data.description
        if data.color:
            category.color = data.color
        self.session.commit()
        self.session.refresh(category)
        return category

    def in_use(self, category_id: int) -> bool:
        expense_count = self.session.execute(
            select(func.count(Expense.id)).where(Expense.category_id == category_id)
        ).scalar_one()
        budget_count = self.session.execute(
            select(func.count(Budget.id)).where(Budget.category_id == category_id)
        ).scalar_one()
        return (expense_count + budget_count) > 0

    def delete(self, category_id: int) -> None:
        category = self.get(category_id)
        if category.is_default:
            raise ValueError("Cannot delete default category")
        if self.in_use(category_id):
            raise ValueError("Category is in use by expenses or budgets")
        self.session.delete(category)
        self.session.commit()
        logger.info(f"category_deleted: id={category_id}")

    def initialize_defaults(self) -> int:
        created = 0
        for name, description, color in DEFAULT_CATEGORIES:
            if self.find_by_name(name):
                continue
            self.session.add(
                Category(
                    name=name, description=description, color=color, is_default=True
                )
            )
            created += 1
        self.session.commit()
        if created:
            logger.info(f"default_categories_seeded: created={created}")
        return created

    def stats(self) -> dict[str, int]:
        categories = self.list_all()
        defaults = sum(1 for c in categories if c.is_default)
        return {
            "total_categories": len(categories),
            "default_categories": defaults,
            "custom_categories": len(categories) - defaults,
        }


class ExpenseService:
    def __init__(self, session: Session, user: User) -> None:
        self.session = session
        self.user = user

    def _owned(self):
        return (
            select(Expense)
            .options(joinedload(Expense.category))
            .where(Expense.user_id == self.user.id)
            .order_by(Expense.date.desc(), Expense.id.desc())
        )

    def _sum(self, *criteria) -> Decimal:
        stmt = select(func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.user_id == self.user.id, *criteria
        )
        return to_money(self.session.execute(stmt).scalar_one())

    def _require_owned(self, expense_id: int, action: str) -> Expense:
        expense = self.session.get(Expense, expense_id)
        if not expense:
            raise NotFoundError("Expense not found")
        if check_owner(expense, self.user) == Access.denied:
            raise NotAuthorizedError(f"Not authorized to {action} this expense")
        return expense

    def list_for_user(self, *, limit: Optional[int] = None) -> list[Expense]:
        stmt = self._owned()
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.session.scalars(stmt).all()

    def list_all(self) -> list[Expense]:
        stmt = (
            select(Expense)
            .options(joinedload(Expense.category))
            .order_by(Expense.date.desc(), Expense.id.desc())
        )
        return self.session.scalars(stmt).all()

    def count(self) -> int:
        return self.session.execute(
            select(func.count(Expense.id)).where(Expense.user_id == self.user.id)
        ).scalar_one()

    def get(self, expense_id: int) -> Expense:
        expense = self.session.get(Expense, expense_id)
        if not expense:
            raise NotFoundError("Expense not found")
        if not can_view(expense, self.user):
            raise NotAuthorizedError("Not authorized to view this expense")
        return expense

    def create(self, data: ExpenseIn) -> Expense:
        category = CategoryService(self.session).get(data.category_id)
        expense = Expense(
            user_id=self.user.id,
            category_id=category.id,
            amount=data.amount,
            description=data.description,
            date=data.date,
        )
        self.session.add(expense)
        self.session.commit()
        self.session.refresh(expense)
        logger.info(
            f"expense_created: id={expense.id} user_id={self.user.id} "
            f"amount={expense.amount}"
        )
        return expense

    def update(self, expense_id: int, data: ExpenseIn) -> Expense:
        expense = self._require_owned(expense_id, "update")
        category = CategoryService(self.session).get(data.category_id)
        expense.amount = data.amount
        expense.description = data.description
        expense.date = data.date
        expense.category_id = category.id
        self.session.commit()
        self.session.refresh(expense)
        return expense

    def delete(self, expense_id: int) -> None:
        expense = self._require_owned(expense_id, "delete")
        self.session.delete(expense)
        self.session.commit()
        logger.info(f"expense_deleted: id={expense_id} user_id={self.user.id}")

    def list_between(self, start: date, end: date) -> list[Expense]:
        if start > end:
            raise ValueError("Start date must be before end date")
        stmt = self._owned().where(Expense.date.between(start, end))
        return self.session.scalars(stmt).all()

    def list_for_period(self, period: Period) -> list[Expense]:
        return self.list_between(period.start, period.end)

    def list_for_category(self, category_id: int) -> list[Expense]:
        category = CategoryService(self.session).get(category_id)
        stmt = self._owned().where(Expense.category_id == category.id)
        return self.session.scalars(stmt).all()

    def list_for_amount_range(
        self, min_amount: Decimal, max_amount: Decimal
    ) -> list[Expense]:
        if min_amount > max_amount:
            raise ValueError("Minimum amount must not exceed maximum amount")
        stmt = self._owned().where(Expense.amount.between(min_amount, max_amount))
        return self.session.scalars(stmt).all()

    def total_for_user(self) -> Decimal:
        return self._sum()

    def total_for_period(self, start: date, end: date) -> Decimal:
        return self._sum(Expense.date.between(start, end))

    def total_for_category(self, category_id: int, start: date, end: date) -> Decimal:
        return self._sum(
            Expense.category_id == category_id, Expense.date.between(start, end)
        )

    def totals_by_category(self, start: date, end: date) -> list[CategoryTotal]:
        total = func.sum(Expense.amount).label("total")
        stmt = (
            select(Category, total)
            .join(Expense, Expense.category_id == Category.id)
            .where(
                Expense.user_id == self.user.id,
                Expense.date.between(start, end),
            )
            .group_by(Category.id)
            .order_by(total.desc(), Category.name)
        )
        return [
            CategoryTotal(category=category, amount=to_money(amount))
            for category, amount in self.session.execute(stmt).all()
        ]

    def monthly_totals(self, year: int) -> dict[str, Decimal]:
        monthly: dict[str, Decimal] = {}
        for month, name in enumerate(MONTH_NAMES, start=1):
            period = month_period(year, month)
            monthly[name] = self.total_for_period(period.start, period.end)
        return monthly

    def stats(self, today: Optional[date] = None) -> dict[str, object]:
        period = current_month(today)
        return {
            "total_expenses": self.count(),
            "total_amount": self.total_for_user(),
            "current_month_amount": self.total_for_period(period.start, period.end),
        }


class BudgetService:
    def __init__(self, session: Session, user: User) -> None:
        self.session = session
        self.user = user

    def _owned(self):
        return (
            select(Budget)
            .options(joinedload(Budget.category))
            .where(Budget.user_id == self.user.id)
        )

    def _require_owned(self, budget_id: int, action: str) -> Budget:
        budget = self.session.get(Budget, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")
        if check_owner(budget, self.user) == Access.denied:
            raise NotAuthorizedError(f"Not authorized to {action} this budget")
        return budget

    @staticmethod
    def _validate(data: BudgetIn) -> None:
        if data.month < 1 or data.month > 12:
            raise ValueError("Month must be between 1 and 12")
        if data.amount <= 0:
            raise ValueError("Budget amount must be positive")

    def find_slice(self, category_id: int, year: int, month: int) -> Optional[Budget]:
        return self.session.scalar(
            select(Budget).where(
                Budget.user_id == self.user.id,
                Budget.category_id == category_id,
                Budget.year == year,
                Budget.month == month,
            )
        )

    def _commit_slice(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            # lost a race against a concurrent write of the same slice
            self.session.rollback()
            raise ValueError(DUPLICATE_BUDGET) from exc

    def list_for_user(self) -> list[Budget]:
        stmt = self._owned().order_by(
            Budget.year.desc(), Budget.month.desc(), Budget.id
        )
        return self.session.scalars(stmt).all()

    def list_all(self) -> list[Budget]:
        stmt = (
            select(Budget)
            .options(joinedload(Budget.category))
            .order_by(Budget.year.desc(), Budget.month.desc(), Budget.id)
        )
        return self.session.scalars(stmt).all()

    def list_for_year(self, year: int) -> list[Budget]:
        stmt = self._owned().where(Budget.year == year).order_by(Budget.month, Budget.id)
        return self.session.scalars(stmt).all()

    def list_for_month(self, year: int, month: int) -> list[Budget]:
        stmt = (
            self._owned()
            .where(Budget.year == year, Budget.month == month)
            .order_by(Budget.id)
        )
        return self.session.scalars(stmt).all()

    def count(self) -> int:
        return self.session.execute(
            select(func.count(Budget.id)).where(Budget.user_id == self.user.id)
        ).scalar_one()

    def get(self, budget_id: int) -> Budget:
        budget = self.session.get(Budget, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")
        if not can_view(budget, self.user):
            raise NotAuthorizedError("Not authorized to view this budget")
        return budget

    def create(self, data: BudgetIn) -> Budget:
        self._validate(data)
        category = CategoryService(self.session).get(data.category_id)
        if self.find_slice(category.id, data.year, data.month):
            raise ValueError(DUPLICATE_BUDGET)
        budget = Budget(
            user_id=self.user.id,
            category_id=category.id,
            amount=data.amount,
            month=data.month,
            year=data.year,
        )
        self.session.add(budget)
        self._commit_slice()
        self.session.refresh(budget)
        logger.info(
            f"budget_created: id={budget.id} user_id={self.user.id} "
            f"category_id={category.id} period={data.year}-{data.month:02d}"
        )
        return budget

    def update(self, budget_id: int, data: BudgetIn) -> Budget:
        budget = self._require_owned(budget_id, "update")
        self._validate(data)
        category = CategoryService(self.session).get(data.category_id)
        existing = self.find_slice(category.id, data.year, data.month)
        if existing and existing.id != budget_id:
            raise ValueError(DUPLICATE_BUDGET)
        budget.amount = data.amount
        budget.category_id = category.id
        budget.month = data.month
        budget.year = data.year
        self._commit_slice()
        self.session.refresh(budget)
        return budget

    def delete(self, budget_id: int) -> None:
        budget = self._require_owned(budget_id, "delete")
        self.session.delete(budget)
        self.session.commit()
        logger.info(f"budget_deleted: id={budget_id} user_id={self.user.id}")

    def total_for_month(self, year: int, month: int) -> Decimal:
        stmt = select(func.coalesce(func.sum(Budget.amount), 0)).where(
            Budget.user_id == self.user.id,
            Budget.year == year,
            Budget.month == month,
        )
        return to_money(self.session.execute(stmt).scalar_one())

    def spent_for_budget(self, budget_id: int) -> Decimal:
        budget = self.session.get(Budget, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")
        if check_owner(budget, self.user) == Access.denied:
            return to_money(ZERO)
        period = month_period(budget.year, budget.month)
        return ExpenseService(self.session, self.user).total_for_category(
            budget.category_id, period.start, period.end
        )

    def remaining_for_category(self, category_id: int, year: int, month: int) -> Decimal:
        category = CategoryService(self.session).get(category_id)
        budget = self.find_slice(category.id, year, month)
        if not budget:
            return to_money(ZERO)
        return to_money(budget.amount) - self.spent_for_budget(budget.id)

    def stats(self, today: Optional[date] = None) -> dict[str, object]:
        period = current_month(today)
        return {
            "total_budgets": self.count(),
            "current_month_budget": self.total_for_month(
                period.start.year, period.start.month
            ),
        }


class DashboardService:
    """Read-only views combining expense and budget aggregates for one user.

    Every view is anchored on ``today`` so callers (and tests) can pin the
    current month.
    """

    def __init__(
        self, session: Session, user: User, *, today: Optional[date] = None
    ) -> None:
        self.session = session
        self.user = user
        self.today = today or local_today()
        self.expenses = ExpenseService(session, user)
        self.budgets = BudgetService(session, user)
        self.categories = CategoryService(session)

    @property
    def month(self) -> Period:
        return current_month(self.today)

    def summary(self) -> dict[str, object]:
        month = self.month
        return {
            "current_month_expenses": self.expenses.total_for_period(
                month.start, month.end
            ),
            "total_expenses": self.expenses.total_for_user(),
            "current_month_budget": self.budgets.total_for_month(
                self.today.year, self.today.month
            ),
            "recent_expenses": self.expenses.list_for_user(limit=10),
            "total_categories": self.categories.count(),
            "expenses_by_category": [
                {"category": row.category, "amount": row.amount}
                for row in self.expenses.totals_by_category(month.start, month.end)
            ],
        }

    def overview(self) -> dict[str, object]:
        month = self.month
        budgeted = self.budgets.total_for_month(self.today.year, self.today.month)
        spent = self.expenses.total_for_period(month.start, month.end)
        return {
            "total_expenses": self.expenses.count(),
            "total_budgets": self.budgets.count(),
            "total_categories": self.categories.count(),
            "total_spent": self.expenses.total_for_user(),
            "current_month_budget": budgeted,
            "current_month_spent": spent,
            "budget_usage_percent": usage_percentage(spent, budgeted),
        }

    def recent_activity(self) -> dict[str, object]:
        week = last_days(7, self.today)
        week_expenses = self.expenses.list_for_period(week)
        return {
            "recent_expenses": self.expenses.list_for_user(limit=5),
            "last_week_expenses": week_expenses,
            "last_week_total": to_money(
                sum((e.amount for e in week_expenses), ZERO)
            ),
        }

    def budget_status(self) -> list[dict[str, object]]:
        status: list[dict[str, object]] = []
        for budget in self.budgets.list_for_month(self.today.year, self.today.month):
            budgeted = to_money(budget.amount)
            spent = self.budgets.spent_for_budget(budget.id)
            status.append(
                {
                    "budget_id": budget.id,
                    "category": budget.category.name,
                    "budget_amount": budgeted,
                    "spent_amount": spent,
                    "remaining_amount": budgeted - spent,
                    "usage_percentage": usage_percentage(spent, budgeted),
                    "is_over_budget": is_over_budget(spent, budgeted),
                }
            )
        return status

    def trends(self, months: int) -> dict[str, object]:
        monthly: dict[str, Decimal] = {}
        for period in trailing_months(months, self.today):
            monthly[period.slug] = self.expenses.total_for_period(
                period.start, period.end
            )
        return {
            "monthly_spending": monthly,
            "average_monthly_spending": average(list(monthly.values())),
        }

    def category_breakdown(self) -> dict[str, object]:
        month = self.month
        amounts = {
            row.category.name: row.amount
            for row in self.expenses.totals_by_category(month.start, month.end)
        }
        return {
            "category_amounts": amounts,
            "total_amount": to_money(sum(amounts.values(), ZERO)),
            "category_percentages": percentage_breakdown(amounts),
        }

    def monthly(self, year: int) -> dict[str, Decimal]:
        return self.expenses.monthly_totals(year)


class UserService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[User]:
        return self.session.scalars(select(User).order_by(User.id)).all()

    def get(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_by_username(self, username: str) -> User:
        user = self.session.scalar(select(User).where(User.username == username))
        if not user:
            raise NotFoundError("User not found")
        return user

    def create(
        self, username: str, email: str, password: str, *, role: Role = Role.user
    ) -> User:
        username = username.strip()
        email = email.strip().lower()
        if self.session.scalar(select(User.id).where(User.username == username)):
            raise ValueError("Username already exists")
        if self.session.scalar(select(User.id).where(User.email == email)):
            raise ValueError("Email already exists")
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role,
            is_active=True,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ValueError("Username or email already exists") from exc
        self.session.refresh(user)
        logger.info(f"user_registered: id={user.id} username={user.username}")
        return user

    def set_active(self, user_id: int, is_active: bool) -> User:
        user = self.get(user_id)
        user.is_active = is_active
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"user_status_changed: id={user_id} is_active={is_active}")
        return user

    def delete(self, user_id: int) -> None:
        user = self.get(user_id)
        self.session.delete(user)
        self.session.commit()
        logger.info(f"user_deleted: id={user_id}")

    def stats(self) -> dict[str, int]:
        users = self.list_all()
        return {
            "total_users": len(users),
            "active_users": sum(1 for u in users if u.is_active),
        }


class AuthService:
    def __init__(self, session: Session) -> None:
        self.session = session

    @staticmethod
    def _token_response(user: User) -> dict[str, object]:
        return {
            "token": create_access_token(user.id, user.username),
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role,
        }

    def register(self, data: RegisterIn) -> dict[str, object]:
        user = UserService(self.session).create(
            data.username, data.email, data.password
        )
        return self._token_response(user)

    def login(self, data: LoginIn) -> dict[str, object]:
        user = self.session.scalar(select(User).where(User.username == data.username))
        if not user or not verify_password(data.password, user.password_hash):
            logger.info(f"login_failed: username={data.username}")
            raise AuthenticationError("Invalid username or password")
        if not user.is_active:
            logger.info(f"login_failed: username={data.username} reason=inactive")
            raise AuthenticationError("Account is disabled")
        logger.info(f"login_succeeded: user_id={user.id}")
        return self._token_response(user)

    def resolve_token(self, token: str) -> User:
        try:
            user_id, username = decode_access_token(token)
        except TokenError as exc:
            raise AuthenticationError(str(exc)) from exc
        user = self.session.get(User, user_id)
        if not user or user.username != username:
            raise AuthenticationError("Invalid token")
        if not user.is_active:
            raise AuthenticationError("Account is disabled")
        return user


DEMO_USERS = (
    ("admin", "admin@example.com", "admin123", Role.admin),
    ("testuser", "user@example.com", "user123", Role.user),
    ("demo", "demo@example.com", "demo123", Role.user),
)

# (amount, description, months back, days back, category)
SAMPLE_EXPENSES = (
    ("45.50", "Grocery shopping", 0, 2, "Food"),
    ("12.00", "Bus ticket", 0, 1, "Transportation"),
    ("25.00", "Movie ticket", 0, 3, "Entertainment"),
    ("150.00", "Electricity bill", 0, 5, "Bills"),
    ("35.75", "Restaurant dinner", 0, 1, "Food"),
    ("60.00", "Gas station", 0, 4, "Transportation"),
    ("8.50", "Coffee", 0, 0, "Food"),
    ("120.00", "Internet bill", 0, 10, "Bills"),
    ("200.00", "Monthly groceries", 1, 15, "Food"),
    ("80.00", "Gas", 1, 10, "Transportation"),
    ("40.00", "Cinema", 1, 5, "Entertainment"),
    ("75.00", "Lunch", 1, 20, "Food"),
    ("300.00", "Big shopping", 2, 12, "Food"),
    ("90.00", "Transport pass", 2, 8, "Transportation"),
)

# (amount, category, months ahead)
SAMPLE_BUDGETS = (
    ("500.00", "Food", 0),
    ("200.00", "Transportation", 0),
    ("100.00", "Entertainment", 0),
    ("300.00", "Bills", 0),
    ("600.00", "Food", 1),
    ("250.00", "Transportation", 1),
)


class SeedService:
    def __init__(self, session: Session, *, today: Optional[date] = None) -> None:
        self.session = session
        self.today = today or local_today()

    def _sample_user(self) -> User:
        user = self.session.scalar(select(User).where(User.username == "testuser"))
        if not user:
            raise ValueError("Test user not found. Initialize users first.")
        return user

    def _categories_by_name(self) -> dict[str, Category]:
        categories = {c.name: c for c in CategoryService(self.session).list_all()}
        if "Food" not in categories:
            raise ValueError("Categories not found. Initialize categories first.")
        return categories

    def seed_categories(self) -> int:
        return CategoryService(self.session).initialize_defaults()

    def seed_users(self) -> int:
        users = UserService(self.session)
        created = 0
        for username, email, password, role in DEMO_USERS:
            if self.session.scalar(select(User.id).where(User.username == username)):
                continue
            users.create(username, email, password, role=role)
            created += 1
        return created

    def seed_expenses(self) -> int:
        user = self._sample_user()
        categories = self._categories_by_name()
        created = 0
        for amount, description, months_back, days_back, name in SAMPLE_EXPENSES:
            category = categories.get(name)
            if not category:
                continue
            month_day = add_months(self.today, -months_back)
            spent_on = month_day - timedelta(days=days_back)
            exists = self.session.scalar(
                select(Expense.id).where(
                    Expense.user_id == user.id,
                    Expense.date == spent_on,
                    Expense.description == description,
                )
            )
            if exists:
                continue
            self.session.add(
                Expense(
                    user_id=user.id,
                    category_id=category.id,
                    amount=Decimal(amount),
                    description=description,
                    date=spent_on,
                )
            )
            created += 1
        self.session.commit()
        return created

    def seed_budgets(self) -> int:
        user = self._sample_user()
        categories = self._categories_by_name()
        budgets = BudgetService(self.session, user)
        created = 0
        for amount, name, months_ahead in SAMPLE_BUDGETS:
            category = categories.get(name)
            if not category:
                continue
            year, month = shift_month(self.today.year, self.today.month, months_ahead)
            if budgets.find_slice(category.id, year, month):
                continue
            budgets.create(
                BudgetIn(
                    amount=Decimal(amount),
                    category_id=category.id,
                    month=month,
                    year=year,
                )
            )
            created += 1
        return created

    def seed_all(self) -> dict[str, int]:
        result = {
            "categories": self.seed_categories(),
            "users": self.seed_users(),
            "expenses": self.seed_expenses(),
            "budgets": self.seed_budgets(),
        }
        logger.info(
            "demo_data_seeded: "
            + " ".join(f"{key}={value}" for key, value in result.items())
        )
        return result

    def clear(self) -> dict[str, int]:
        expenses = self.session.execute(delete(Expense)).rowcount
        budgets = self.session.execute(delete(Budget)).rowcount
        self.session.commit()
        logger.info(f"demo_data_cleared: expenses={expenses} budgets={budgets}")
        return {"expenses": expenses, "budgets": budgets}

    def status(self) -> dict[str, int]:
        def count(model) -> int:
            return self.session.execute(select(func.count(model.id))).scalar_one()

        return {
            "users": count(User),
            "categories": count(Category),
            "expenses": count(Expense),
            "budgets": count(Budget),
        }
