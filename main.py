import logging
from datetime import MAXYEAR, MINYEAR, date
from decimal import Decimal
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from config import get_settings
from database import engine, get_db, session_scope
from models import User
from periods import current_month, last_days, local_today
from schemas import (
    BudgetIn,
    BudgetOut,
    BudgetStatsOut,
    BudgetStatusOut,
    CategoryBreakdownOut,
    CategoryIn,
    CategoryOut,
    CategoryStatsOut,
    CategoryTotalOut,
    DashboardSummaryOut,
    ExpenseIn,
    ExpenseOut,
    ExpenseStatsOut,
    InitStatusOut,
    LoginIn,
    OverviewOut,
    RecentActivityOut,
    RegisterIn,
    TokenOut,
    TrendsOut,
    UserOut,
    UserStatsOut,
)
from services import (
    AuthService,
    AuthenticationError,
    BudgetService,
    CategoryService,
    DashboardService,
    ExpenseService,
    NotAuthorizedError,
    NotFoundError,
    SeedService,
    UserService,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title="Expense Tracker API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

bearer_scheme = HTTPBearer(auto_error=False)

YearPath = Annotated[int, Path(ge=MINYEAR, le=MAXYEAR)]
MonthPath = Annotated[int, Path(ge=1, le=12)]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.on_event("startup")
def startup_event():
    if not settings.seed_defaults:
        return
    if not inspect(engine).has_table("categories"):
        logger.warning("startup: schema missing, run `alembic upgrade head`")
        return
    with session_scope() as session:
        created = CategoryService(session).initialize_defaults()
        logger.info(f"startup: default_categories_created={created}")


def get_today() -> date:
    return local_today()


def current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return AuthService(db).resolve_token(credentials.credentials)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=401, detail=str(exc), headers={"WWW-Authenticate": "Bearer"}
        ) from exc


def require_admin(user: User = Depends(current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


def require_init_enabled() -> None:
    if not settings.enable_init:
        raise HTTPException(status_code=404, detail="Not Found")


# auth


@app.post("/api/auth/login", response_model=TokenOut)
def login(data: LoginIn, db: Session = Depends(get_db)):
    try:
        return AuthService(db).login(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/auth/register", response_model=TokenOut)
def register(data: RegisterIn, db: Session = Depends(get_db)):
    try:
        return AuthService(db).register(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


# expenses


@app.get("/api/expenses", response_model=list[ExpenseOut])
def list_expenses(
    db: Session = Depends(get_db), user: User = Depends(current_user)
):
    return ExpenseService(db, user).list_for_user()


@app.post("/api/expenses", response_model=ExpenseOut, status_code=201)
def create_expense(
    data: ExpenseIn, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    try:
        return ExpenseService(db, user).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/expenses/all", response_model=list[ExpenseOut])
def list_all_expenses(
    db: Session = Depends(get_db), admin: User = Depends(require_admin)
):
    return ExpenseService(db, admin).list_all()


@app.get("/api/expenses/current-month", response_model=list[ExpenseOut])
def current_month_expenses(
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
    today: date = Depends(get_today),
):
    return ExpenseService(db, user).list_for_period(current_month(today))


@app.get("/api/expenses/last-days/{days}", response_model=list[ExpenseOut])
def expenses_last_days(
    days: int,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
    today: date = Depends(get_today),
):
    try:
        period = last_days(days, today)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ExpenseService(db, user).list_for_period(period)


@app.get("/api/expenses/filter/date-range", response_model=list[ExpenseOut])
def expenses_by_date_range(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    try:
        return ExpenseService(db, user).list_between(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get(
    "/api/expenses/filter/category/{category_id}", response_model=list[ExpenseOut]
)
def expenses_by_category(
    category_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    try:
        return ExpenseService(db, user).list_for_category(category_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/expenses/filter/amount-range", response_model=list[ExpenseOut])
def expenses_by_amount_range(
    min_amount: Decimal,
    max_amount: Decimal,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    try:
        return ExpenseService(db, user).list_for_amount_range(min_amount, max_amount)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/expenses/reports/total")
def expenses_total(db: Session = Depends(get_db), user: User = Depends(current_user)):
    return ExpenseService(db, user).total_for_user()


@app.get("/api/expenses/reports/total/period")
def expenses_total_for_period(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    if start_date > end_date:
        raise HTTPException(
            status_code=400, detail="Start date must be before end date"
        )
    return ExpenseService(db, user).total_for_period(start_date, end_date)


@app.get("/api/expenses/reports/by-category", response_model=list[CategoryTotalOut])
def expenses_total_by_category(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    if start_date > end_date:
        raise HTTPException(
            status_code=400, detail="Start date must be before end date"
        )
    rows = ExpenseService(db, user).totals_by_category(start_date, end_date)
    return [{"category": row.category, "amount": row.amount} for row in rows]


@app.get("/api/expenses/reports/monthly/{year}")
def expenses_monthly(
    year: YearPath, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    return ExpenseService(db, user).monthly_totals(year)


@app.get("/api/expenses/stats", response_model=ExpenseStatsOut)
def expense_stats(
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
    today: date = Depends(get_today),
):
    return ExpenseService(db, user).stats(today)


@app.get("/api/expenses/{expense_id}", response_model=ExpenseOut)
def get_expense(
    expense_id: int, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    try:
        return ExpenseService(db, user).get(expense_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.put("/api/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: int,
    data: ExpenseIn,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    try:
        return ExpenseService(db, user).update(expense_id, data)
    except (NotFoundError, NotAuthorizedError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/api/expenses/{expense_id}", status_code=204)
def delete_expense(
    expense_id: int, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    try:
        ExpenseService(db, user).delete(expense_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


# budgets


@app.get("/api/budgets", response_model=list[BudgetOut])
def list_budgets(db: Session = Depends(get_db), user: User = Depends(current_user)):
    return BudgetService(db, user).list_for_user()


@app.post("/api/budgets", response_model=BudgetOut, status_code=201)
def create_budget(
    data: BudgetIn, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    try:
        return BudgetService(db, user).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/budgets/all", response_model=list[BudgetOut])
def list_all_budgets(
    db: Session = Depends(get_db), admin: User = Depends(require_admin)
):
    return BudgetService(db, admin).list_all()


@app.get("/api/budgets/current-month", response_model=list[BudgetOut])
def current_month_budgets(
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
    today: date = Depends(get_today),
):
    return BudgetService(db, user).list_for_month(today.year, today.month)


@app.get("/api/budgets/year/{year}", response_model=list[BudgetOut])
def budgets_for_year(
    year: YearPath, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    return BudgetService(db, user).list_for_year(year)


@app.get("/api/budgets/period/{year}/{month}", response_model=list[BudgetOut])
def budgets_for_period(
    year: YearPath,
    month: MonthPath,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    return BudgetService(db, user).list_for_month(year, month)


@app.get("/api/budgets/total/{year}/{month}")
def budget_total_for_month(
    year: YearPath,
    month: MonthPath,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    return BudgetService(db, user).total_for_month(year, month)


@app.get("/api/budgets/remaining/{category_id}/{year}/{month}")
def budget_remaining_for_category(
    category_id: int,
    year: YearPath,
    month: MonthPath,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    try:
        return BudgetService(db, user).remaining_for_category(category_id, year, month)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/budgets/stats", response_model=BudgetStatsOut)
def budget_stats(
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
    today: date = Depends(get_today),
):
    return BudgetService(db, user).stats(today)


@app.get("/api/budgets/{budget_id}", response_model=BudgetOut)
def get_budget(
    budget_id: int, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    try:
        return BudgetService(db, user).get(budget_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/budgets/{budget_id}/spent")
def budget_spent(
    budget_id: int, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    try:
        return BudgetService(db, user).spent_for_budget(budget_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.put("/api/budgets/{budget_id}", response_model=BudgetOut)
def update_budget(
    budget_id: int,
    data: BudgetIn,
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    try:
        return BudgetService(db, user).update(budget_id, data)
    except (NotFoundError, NotAuthorizedError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/api/budgets/{budget_id}", status_code=204)
def delete_budget(
    budget_id: int, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    try:
        BudgetService(db, user).delete(budget_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


# categories


@app.get("/api/categories", response_model=list[CategoryOut])
def list_categories(
    db: Session = Depends(get_db), _user: User = Depends(current_user)
):
    return CategoryService(db).list_all()


@app.post("/api/categories", response_model=CategoryOut, status_code=201)
def create_category(
    data: CategoryIn, db: Session = Depends(get_db), _admin: User = Depends(require_admin)
):
    try:
        return CategoryService(db).create(data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/categories/default", response_model=list[CategoryOut])
def default_categories(
    db: Session = Depends(get_db), _user: User = Depends(current_user)
):
    return CategoryService(db).list_default()


@app.get("/api/categories/custom", response_model=list[CategoryOut])
def custom_categories(
    db: Session = Depends(get_db), _user: User = Depends(current_user)
):
    return CategoryService(db).list_custom()


@app.get("/api/categories/stats", response_model=CategoryStatsOut)
def category_stats(db: Session = Depends(get_db), _user: User = Depends(current_user)):
    return CategoryService(db).stats()


@app.post("/api/categories/initialize-defaults")
def initialize_default_categories(
    db: Session = Depends(get_db), _admin: User = Depends(require_admin)
):
    created = CategoryService(db).initialize_defaults()
    return {"created": created}


@app.get("/api/categories/{category_id}", response_model=CategoryOut)
def get_category(
    category_id: int, db: Session = Depends(get_db), _user: User = Depends(current_user)
):
    try:
        return CategoryService(db).get(category_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.put("/api/categories/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    data: CategoryIn,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    try:
        return CategoryService(db).update(category_id, data)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/api/categories/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    try:
        CategoryService(db).delete(category_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return Response(status_code=204)


# users


@app.post("/api/users/register", response_model=UserOut, status_code=201)
def register_user(data: RegisterIn, db: Session = Depends(get_db)):
    try:
        return UserService(db).create(data.username, data.email, data.password)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/users", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return UserService(db).list_all()


@app.get("/api/users/current", response_model=UserOut)
def get_current_user(user: User = Depends(current_user)):
    return user


@app.get("/api/users/stats", response_model=UserStatsOut)
def user_stats(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return UserService(db).stats()


@app.get("/api/users/username/{username}", response_model=UserOut)
def get_user_by_username(
    username: str, db: Session = Depends(get_db), _admin: User = Depends(require_admin)
):
    try:
        return UserService(db).get_by_username(username)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.get("/api/users/{user_id}", response_model=UserOut)
def get_user(
    user_id: int, db: Session = Depends(get_db), user: User = Depends(current_user)
):
    if user.id != user_id and not user.is_admin:
        raise HTTPException(status_code=404, detail="User not found")
    try:
        return UserService(db).get(user_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.put("/api/users/{user_id}/status", response_model=UserOut)
def update_user_status(
    user_id: int,
    is_active: bool = Query(...),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    try:
        return UserService(db).set_active(user_id, is_active)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.delete("/api/users/{user_id}", status_code=204)
def delete_user(
    user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    try:
        UserService(db).delete(user_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


# dashboard


def dashboard_service(
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
    today: date = Depends(get_today),
) -> DashboardService:
    return DashboardService(db, user, today=today)


@app.get("/api/dashboard", response_model=DashboardSummaryOut)
def dashboard_summary(service: DashboardService = Depends(dashboard_service)):
    return service.summary()


@app.get("/api/dashboard/overview", response_model=OverviewOut)
def dashboard_overview(service: DashboardService = Depends(dashboard_service)):
    return service.overview()


@app.get("/api/dashboard/recent-activity", response_model=RecentActivityOut)
def dashboard_recent_activity(service: DashboardService = Depends(dashboard_service)):
    return service.recent_activity()


@app.get("/api/dashboard/budget-status", response_model=list[BudgetStatusOut])
def dashboard_budget_status(service: DashboardService = Depends(dashboard_service)):
    return service.budget_status()


@app.get("/api/dashboard/trends/{months}", response_model=TrendsOut)
def dashboard_trends(
    months: int, service: DashboardService = Depends(dashboard_service)
):
    if months < 1 or months > 120:
        raise HTTPException(
            status_code=400, detail="Number of months must be between 1 and 120"
        )
    return service.trends(months)


@app.get("/api/dashboard/category-breakdown", response_model=CategoryBreakdownOut)
def dashboard_category_breakdown(
    service: DashboardService = Depends(dashboard_service),
):
    return service.category_breakdown()


@app.get("/api/dashboard/monthly/{year}")
def dashboard_monthly(
    year: YearPath, service: DashboardService = Depends(dashboard_service)
):
    return service.monthly(year)


# demo data


@app.post("/api/init/all", dependencies=[Depends(require_init_enabled)])
def init_all(db: Session = Depends(get_db), today: date = Depends(get_today)):
    try:
        created = SeedService(db, today=today).seed_all()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"status": "SUCCESS", "created": created}


@app.post("/api/init/categories", dependencies=[Depends(require_init_enabled)])
def init_categories(db: Session = Depends(get_db)):
    return {"created": SeedService(db).seed_categories()}


@app.post("/api/init/users", dependencies=[Depends(require_init_enabled)])
def init_users(db: Session = Depends(get_db)):
    return {"created": SeedService(db).seed_users()}


@app.post("/api/init/expenses", dependencies=[Depends(require_init_enabled)])
def init_expenses(db: Session = Depends(get_db), today: date = Depends(get_today)):
    try:
        return {"created": SeedService(db, today=today).seed_expenses()}
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/init/budgets", dependencies=[Depends(require_init_enabled)])
def init_budgets(db: Session = Depends(get_db), today: date = Depends(get_today)):
    try:
        return {"created": SeedService(db, today=today).seed_budgets()}
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/init/clear", dependencies=[Depends(require_init_enabled)])
def init_clear(db: Session = Depends(get_db)):
    return {"deleted": SeedService(db).clear()}


@app.get(
    "/api/init/status",
    response_model=InitStatusOut,
    dependencies=[Depends(require_init_enabled)],
)
def init_status(db: Session = Depends(get_db)):
    return SeedService(db).status()
