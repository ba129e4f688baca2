"""Domain models - pure Python dataclasses representing ledger entities and derived views"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

from finance_core.domain.exceptions import InvalidAmountFormat, InvalidBudgetDefinition

INCOME = "income"
EXPENSE = "expense"
DIRECTIONS = (INCOME, EXPENSE)

FREQUENCIES = ("weekly", "biweekly", "monthly", "quarterly", "annual")
BUDGET_PERIODS = ("weekly", "monthly", "quarterly", "annual")

# Amortization entry statuses
PENDING = "pending"
PAID = "paid"
OVERDUE = "overdue"
PARTIAL = "partial"

DEFAULT_ALERT_THRESHOLDS = (0.8, 1.0)


class UndefinedRatio(Enum):
    """Sentinel for a ratio computed against a zero denominator"""

    UNDEFINED = "undefined"


UNDEFINED_RATIO = UndefinedRatio.UNDEFINED


@dataclass
class Period:
    """Inclusive date window with its canonical label"""

    kind: str
    start: date
    end: date
    label: str

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass
class Movement:
    """Single dated income or expense record"""

    id: str
    description: str
    amount_cents: int  # unsigned magnitude
    direction: str  # "income" or "expense"
    category: str
    date: date
    entity_id: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.amount_cents <= 0:
            raise InvalidAmountFormat(f"Movement amount must be positive, got {self.amount_cents}")
        if self.direction not in DIRECTIONS:
            raise InvalidAmountFormat(f"Unknown movement direction: {self.direction}")


@dataclass
class Entity:
    """Named account; total_cents is a cache, never ground truth"""

    id: str
    name: str
    total_cents: Optional[int] = None


@dataclass
class RecurringRule:
    """Template for periodic obligations such as subscriptions or salary"""

    id: str
    description: str
    amount_cents: int
    category: str
    frequency: str
    start_date: date
    next_due_date: date
    direction: str = EXPENSE
    entity_id: Optional[str] = None
    end_date: Optional[date] = None
    active: bool = True
    auto_post: bool = True
    is_estimated: bool = False
    backfill_missed: bool = True


@dataclass
class RecurringPosting:
    """Record that a rule already posted for one period"""

    rule_id: str
    period_label: str
    due_date: date
    movement_id: Optional[str] = None


@dataclass
class PendingOccurrence:
    """Due occurrence waiting for user confirmation"""

    rule_id: str
    due_date: date
    period_label: str
    amount_cents: int
    is_estimated: bool


@dataclass
class SchedulePlan:
    """Output of a due-check sweep, persisted by the caller as one write"""

    movements: List[Movement] = field(default_factory=list)
    postings: List[RecurringPosting] = field(default_factory=list)
    queued: List[PendingOccurrence] = field(default_factory=list)
    rules: List[RecurringRule] = field(default_factory=list)


@dataclass
class AmortizationEntry:
    """Single scheduled loan payment"""

    period: int  # 1-indexed
    due_date: date
    payment_cents: int
    principal_cents: int
    interest_cents: int
    remaining_principal_cents: int
    status: str = PENDING
    movement_id: Optional[str] = None
    partial_paid_cents: Optional[int] = None

    @property
    def outstanding_cents(self) -> int:
        if self.status == PAID:
            return 0
        return self.payment_cents - (self.partial_paid_cents or 0)


@dataclass
class RateChange:
    """Interest rate change effective from a date"""

    effective_date: date
    annual_rate: float


@dataclass
class LongTermDebt:
    """Fixed-payment loan with its amortization schedule"""

    id: str
    name: str
    original_principal_cents: int
    current_principal_cents: int
    annual_rate: float
    monthly_payment_cents: int
    term_months: int
    start_date: date
    method: str = "french"
    active: bool = True
    schedule: List[AmortizationEntry] = field(default_factory=list)
    rate_history: List[RateChange] = field(default_factory=list)


@dataclass
class Budget:
    """Spending limit over categories for a recurring period"""

    id: str
    name: str
    limit_cents: int
    period: str
    categories: Tuple[str, ...] = ()  # empty means every category
    entity_ids: Tuple[str, ...] = ()  # empty means every entity
    alert_thresholds: Tuple[float, ...] = DEFAULT_ALERT_THRESHOLDS
    rollover_enabled: bool = False
    rollover_cap_cents: Optional[int] = None

    def __post_init__(self) -> None:
        if self.limit_cents <= 0:
            raise InvalidBudgetDefinition(f"Budget limit must be positive, got {self.limit_cents}")
        if self.period not in BUDGET_PERIODS:
            raise InvalidBudgetDefinition(f"Unsupported budget period: {self.period}")
        if any(t <= 0 or t > 10 for t in self.alert_thresholds):
            raise InvalidBudgetDefinition("Alert thresholds must be in (0, 10]")
        if self.rollover_cap_cents is not None and self.rollover_cap_cents < 0:
            raise InvalidBudgetDefinition("Rollover cap cannot be negative")
        self.categories = tuple(self.categories)
        self.entity_ids = tuple(self.entity_ids)
        self.alert_thresholds = tuple(sorted(self.alert_thresholds))


@dataclass
class BudgetAlert:
    """Threshold alert fired for one budget period"""

    budget_id: str
    threshold: float
    period_label: str
    dismissed: bool = False


@dataclass
class BudgetStatus:
    """Derived spend-vs-limit state, never persisted"""

    budget_id: str
    period: Period
    spent_cents: int
    rollover_cents: int
    effective_limit_cents: int
    remaining_cents: int
    usage_percentage: int
    status: str  # "ok" | "warning" | "exceeded"
    pending_alerts: List[BudgetAlert]
    movement_count: int


@dataclass
class Goal:
    """Savings target; current amount is the sum of its contributions"""

    id: str
    name: str
    target_cents: int
    target_date: Optional[date] = None


@dataclass
class Contribution:
    """Money set aside for a goal"""

    goal_id: str
    amount_cents: int
    date: date


@dataclass
class GoalProgress:
    """Derived goal state"""

    goal_id: str
    current_cents: int
    remaining_cents: int
    percentage: int
    overfunded: bool
    projected_completion: Optional[date]


@dataclass
class TimeSeriesPoint:
    """One analytics bucket"""

    label: str
    start: date
    end: date
    income_cents: int = 0
    expense_cents: int = 0

    @property
    def net_cents(self) -> int:
        return self.income_cents - self.expense_cents


@dataclass
class BreakdownItem:
    """Share of a category or entity in a report"""

    key: str
    label: str
    amount_cents: int
    percentage: int
    count: int


@dataclass
class AnalyticsReport:
    """Time series and breakdowns for a date range"""

    start_date: date
    end_date: date
    granularity: str
    generated_at: datetime
    total_income_cents: int
    total_expense_cents: int
    time_series: List[TimeSeriesPoint]
    expense_by_category: List[BreakdownItem]
    income_by_category: List[BreakdownItem]
    net_by_entity: List[BreakdownItem]

    @property
    def net_cents(self) -> int:
        return self.total_income_cents - self.total_expense_cents


@dataclass
class HealthRatio:
    """Single scored component of the health snapshot"""

    name: str
    value: object  # float or UNDEFINED_RATIO
    status: str  # "good" | "warning" | "critical"
    weight: float
    score: int


@dataclass
class HealthSnapshot:
    """Scored financial health at a point in time"""

    generated_at: datetime
    total_assets_cents: int
    total_liabilities_cents: int
    net_worth_cents: int
    avg_monthly_income_cents: int
    avg_monthly_expense_cents: int
    monthly_debt_payments_cents: int
    savings_rate: float
    debt_to_income_ratio: object  # float or UNDEFINED_RATIO
    emergency_fund_months: object  # float or UNDEFINED_RATIO
    ratios: List[HealthRatio]
    score: int


@dataclass
class ForecastEvent:
    """Projected cash movement inside the forecast horizon"""

    date: date
    amount_cents: int  # signed
    source: str  # "recurring" | "debt" | "goal"
    reference_id: str
    description: str
    is_estimated: bool = False


@dataclass
class ForecastPeriod:
    """One bucket of the cash-flow projection"""

    label: str
    start: date
    end: date
    opening_balance_cents: int
    projected_income_cents: int
    projected_expenses_cents: int
    closing_balance_cents: int
    events: List[ForecastEvent] = field(default_factory=list)

    @property
    def net_cash_flow_cents(self) -> int:
        return self.projected_income_cents - self.projected_expenses_cents


@dataclass
class CashFlowForecast:
    """Projected balances across the horizon"""

    start_date: date
    end_date: date
    period_type: str
    generated_at: datetime
    initial_balance_cents: int
    entries: List[ForecastPeriod]
    lowest_balance_cents: int
    lowest_balance_date: date
    first_negative_date: Optional[date]

    @property
    def ending_balance_cents(self) -> int:
        return self.entries[-1].closing_balance_cents if self.entries else self.initial_balance_cents
