from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, StringConstraints

from models import Role

# Decimals leave the API as JSON numbers, not strings.
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]

HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


class LoginIn(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=72)


class RegisterIn(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(
        ..., max_length=120, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
    )
    password: str = Field(..., min_length=6, max_length=72)


class TokenOut(BaseModel):
    token: str
    id: int
    username: str
    email: str
    role: Role


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: Role
    is_active: bool
    created_at: datetime


class UserStatsOut(BaseModel):
    total_users: int
    active_users: int


class CategoryIn(BaseModel):
    name: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)
    ]
    description: Optional[str] = Field(default=None, max_length=200)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    color: str
    is_default: bool


class CategoryStatsOut(BaseModel):
    total_categories: int
    default_categories: int
    custom_categories: int


class ExpenseIn(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(default=None, max_length=255)
    date: date
    category_id: int


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: Money
    description: Optional[str]
    date: date
    category: CategoryOut
    created_at: datetime
    updated_at: datetime


class ExpenseStatsOut(BaseModel):
    total_expenses: int
    total_amount: Money
    current_month_amount: Money


class CategoryTotalOut(BaseModel):
    category: CategoryOut
    amount: Money


class BudgetIn(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    category_id: int
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1970, le=3000)


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: Money
    month: int
    year: int
    category: CategoryOut
    created_at: datetime
    updated_at: datetime


class BudgetStatsOut(BaseModel):
    total_budgets: int
    current_month_budget: Money


class DashboardSummaryOut(BaseModel):
    current_month_expenses: Money
    total_expenses: Money
    current_month_budget: Money
    recent_expenses: list[ExpenseOut]
    total_categories: int
    expenses_by_category: list[CategoryTotalOut]


class OverviewOut(BaseModel):
    total_expenses: int
    total_budgets: int
    total_categories: int
    total_spent: Money
    current_month_budget: Money
    current_month_spent: Money
    budget_usage_percent: float


class RecentActivityOut(BaseModel):
    recent_expenses: list[ExpenseOut]
    last_week_expenses: list[ExpenseOut]
    last_week_total: Money


class BudgetStatusOut(BaseModel):
    budget_id: int
    category: str
    budget_amount: Money
    spent_amount: Money
    remaining_amount: Money
    usage_percentage: float
    is_over_budget: bool


class TrendsOut(BaseModel):
    monthly_spending: dict[str, Money]
    average_monthly_spending: Money


class CategoryBreakdownOut(BaseModel):
    category_amounts: dict[str, Money]
    total_amount: Money
    category_percentages: dict[str, float]


class InitStatusOut(BaseModel):
    users: int
    categories: int
    expenses: int
    budgets: int
