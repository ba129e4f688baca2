"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from finance_core.domain.models import (
    AmortizationEntry,
    Budget,
    BudgetAlert,
    Contribution,
    Entity,
    Goal,
    LongTermDebt,
    Movement,
    RateChange,
    RecurringPosting,
    RecurringRule,
    UndefinedRatio,
)

Direction = Literal["income", "expense"]
Frequency = Literal["weekly", "biweekly", "monthly", "quarterly", "annual"]
Ratio = Union[float, UndefinedRatio]


class DomainSchema(BaseModel):
    """Base for schemas that mirror domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


# Ledger snapshots


class MovementSchema(DomainSchema):
    """Single income or expense record"""

    id: str
    description: str
    amount_cents: int = Field(..., description="Unsigned amount in cents")
    direction: Direction
    category: str
    date: date
    entity_id: Optional[str] = None
    payment_method: Optional[str] = None

    def to_domain(self) -> Movement:
        return Movement(**self.model_dump())


class EntitySchema(DomainSchema):
    """Account holding a derived balance"""

    id: str
    name: str
    total_cents: Optional[int] = None

    def to_domain(self) -> Entity:
        return Entity(**self.model_dump())


class RecurringRuleSchema(DomainSchema):
    """Periodic obligation template"""

    id: str
    description: str
    amount_cents: int = Field(..., gt=0)
    category: str
    frequency: Frequency
    start_date: date
    next_due_date: date
    direction: Direction = "expense"
    entity_id: Optional[str] = None
    end_date: Optional[date] = None
    active: bool = True
    auto_post: bool = True
    is_estimated: bool = False
    backfill_missed: bool = True

    def to_domain(self) -> RecurringRule:
        return RecurringRule(**self.model_dump())


class RecurringPostingSchema(DomainSchema):
    """Existing posting for a rule period"""

    rule_id: str
    period_label: str
    due_date: date
    movement_id: Optional[str] = None

    def to_domain(self) -> RecurringPosting:
        return RecurringPosting(**self.model_dump())


class PendingOccurrenceSchema(DomainSchema):
    """Occurrence waiting for confirmation"""

    rule_id: str
    due_date: date
    period_label: str
    amount_cents: int
    is_estimated: bool


class AmortizationEntrySchema(DomainSchema):
    """Single scheduled loan payment"""

    period: int
    due_date: date
    payment_cents: int
    principal_cents: int
    interest_cents: int
    remaining_principal_cents: int
    status: Literal["pending", "paid", "overdue", "partial"] = "pending"
    movement_id: Optional[str] = None
    partial_paid_cents: Optional[int] = None

    def to_domain(self) -> AmortizationEntry:
        return AmortizationEntry(**self.model_dump())


class RateChangeSchema(DomainSchema):
    effective_date: date
    annual_rate: float

    def to_domain(self) -> RateChange:
        return RateChange(**self.model_dump())


class LongTermDebtSchema(DomainSchema):
    """Loan with its amortization schedule"""

    id: str
    name: str
    original_principal_cents: int
    current_principal_cents: int
    annual_rate: float
    monthly_payment_cents: int
    term_months: int
    start_date: date
    method: Literal["french"] = "french"
    active: bool = True
    schedule: List[AmortizationEntrySchema] = []
    rate_history: List[RateChangeSchema] = []

    def to_domain(self) -> LongTermDebt:
        data = self.model_dump(exclude={"schedule", "rate_history"})
        return LongTermDebt(
            **data,
            schedule=[e.to_domain() for e in self.schedule],
            rate_history=[c.to_domain() for c in self.rate_history],
        )


class BudgetSchema(BaseModel):
    """Budget definition; limits are validated by the domain on conversion"""

    id: str
    name: str
    limit_cents: int
    period: Literal["weekly", "monthly", "quarterly", "annual"]
    categories: List[str] = []
    entity_ids: List[str] = []
    alert_thresholds: List[float] = [0.8, 1.0]
    rollover_enabled: bool = False
    rollover_cap_cents: Optional[int] = None

    def to_domain(self) -> Budget:
        return Budget(**self.model_dump())


class BudgetAlertSchema(DomainSchema):
    budget_id: str
    threshold: float
    period_label: str
    dismissed: bool = False

    def to_domain(self) -> BudgetAlert:
        return BudgetAlert(**self.model_dump())


class GoalSchema(DomainSchema):
    id: str
    name: str
    target_cents: int = Field(..., gt=0)
    target_date: Optional[date] = None

    def to_domain(self) -> Goal:
        return Goal(**self.model_dump())


class ContributionSchema(DomainSchema):
    goal_id: str
    amount_cents: int = Field(..., gt=0)
    date: date

    def to_domain(self) -> Contribution:
        return Contribution(**self.model_dump())


# Amounts


class AmountParseRequest(BaseModel):
    """Request body for POST /v1/amounts/parse"""

    text: str
    locale: Optional[str] = None


class AmountFormatRequest(BaseModel):
    """Request body for POST /v1/amounts/format"""

    cents: int
    locale: Optional[str] = None


class AmountResponse(BaseModel):
    cents: int
    formatted: str
    locale: str


# Amortization


class ScheduleRequest(BaseModel):
    """Request body for POST /v1/amortization/schedule"""

    principal_cents: int
    annual_rate: float
    term_months: int
    start_date: date


class RecomputeRequest(BaseModel):
    """Request body for POST /v1/amortization/recompute"""

    schedule: List[AmortizationEntrySchema]
    from_period: int
    new_principal_cents: int
    annual_rate: float
    remaining_periods: Optional[int] = None
    strategy: Literal["reduce_payment", "reduce_term"] = "reduce_payment"


class ScheduleResponse(BaseModel):
    entries: List[AmortizationEntrySchema]
    total_interest_cents: int
    total_paid_cents: int


# Recurring


class RecurringDueRequest(BaseModel):
    """Request body for POST /v1/recurring/due"""

    rules: List[RecurringRuleSchema]
    postings: List[RecurringPostingSchema] = []
    today: date


class RecurringPlanResponse(BaseModel):
    due_rule_ids: List[str]
    movements: List[MovementSchema]
    postings: List[RecurringPostingSchema]
    queued: List[PendingOccurrenceSchema]
    rules: List[RecurringRuleSchema]


class RecurringRunRequest(BaseModel):
    """Request body for POST /v1/recurring/run"""

    today: date


class RecurringRunResponse(BaseModel):
    posted_movement_ids: List[str]
    queued: List[PendingOccurrenceSchema]


class RecurringConfirmRequest(BaseModel):
    """Request body for POST /v1/recurring/confirm; amount_cents overrides an estimate"""

    rule_id: str
    period_label: str
    amount_cents: Optional[int] = Field(None, gt=0)


# Budgets


class BudgetEvaluateRequest(BaseModel):
    """Request body for POST /v1/budgets/evaluate"""

    budgets: List[BudgetSchema]
    movements: List[MovementSchema] = []
    fired_alerts: List[BudgetAlertSchema] = []
    prior_remaining: Dict[str, int] = {}
    today: date


class PeriodSchema(DomainSchema):
    kind: str
    start: date
    end: date
    label: str


class BudgetStatusSchema(DomainSchema):
    budget_id: str
    period: PeriodSchema
    spent_cents: int
    rollover_cents: int
    effective_limit_cents: int
    remaining_cents: int
    usage_percentage: int
    status: Literal["ok", "warning", "exceeded"]
    pending_alerts: List[BudgetAlertSchema]
    movement_count: int


# Analytics


class AnalyticsRequest(BaseModel):
    """Request body for POST /v1/analytics/report; granularity defaults to the recommended one"""

    movements: List[MovementSchema] = []
    start_date: date
    end_date: date
    granularity: Optional[Literal["daily", "weekly", "monthly"]] = None
    category_labels: Dict[str, str] = {}
    entity_names: Dict[str, str] = {}


class TimeSeriesPointSchema(DomainSchema):
    label: str
    start: date
    end: date
    income_cents: int
    expense_cents: int
    net_cents: int


class BreakdownItemSchema(DomainSchema):
    key: str
    label: str
    amount_cents: int
    percentage: int
    count: int


class AnalyticsReportSchema(DomainSchema):
    start_date: date
    end_date: date
    granularity: str
    generated_at: datetime
    total_income_cents: int
    total_expense_cents: int
    net_cents: int
    time_series: List[TimeSeriesPointSchema]
    expense_by_category: List[BreakdownItemSchema]
    income_by_category: List[BreakdownItemSchema]
    net_by_entity: List[BreakdownItemSchema]


# Health


class HealthRequest(BaseModel):
    """Request body for POST /v1/health/snapshot; balances are derived from movements"""

    movements: List[MovementSchema] = []
    debts: List[LongTermDebtSchema] = []
    entities: List[EntitySchema] = []
    today: date


class HealthRatioSchema(DomainSchema):
    name: str
    value: Ratio
    status: Literal["good", "warning", "critical"]
    weight: float
    score: int


class HealthSnapshotSchema(DomainSchema):
    generated_at: datetime
    total_assets_cents: int
    total_liabilities_cents: int
    net_worth_cents: int
    avg_monthly_income_cents: int
    avg_monthly_expense_cents: int
    monthly_debt_payments_cents: int
    savings_rate: float
    debt_to_income_ratio: Ratio
    emergency_fund_months: Ratio
    ratios: List[HealthRatioSchema]
    score: int


# Forecast


class ForecastRequest(BaseModel):
    """Request body for POST /v1/forecast"""

    initial_balance_cents: int = 0
    rules: List[RecurringRuleSchema] = []
    debts: List[LongTermDebtSchema] = []
    goal_contributions: List[ContributionSchema] = []
    start_date: date
    horizon_months: Optional[int] = None
    period_type: Literal["weekly", "monthly"] = "monthly"


class ForecastEventSchema(DomainSchema):
    date: date
    amount_cents: int
    source: str
    reference_id: str
    description: str
    is_estimated: bool


class ForecastPeriodSchema(DomainSchema):
    label: str
    start: date
    end: date
    opening_balance_cents: int
    projected_income_cents: int
    projected_expenses_cents: int
    net_cash_flow_cents: int
    closing_balance_cents: int
    events: List[ForecastEventSchema]


class CashFlowForecastSchema(DomainSchema):
    start_date: date
    end_date: date
    period_type: str
    generated_at: datetime
    initial_balance_cents: int
    entries: List[ForecastPeriodSchema]
    lowest_balance_cents: int
    lowest_balance_date: date
    first_negative_date: Optional[date]
    ending_balance_cents: int


# Ledger helpers


class MovementSearchRequest(BaseModel):
    """Request body for POST /v1/movements/search"""

    movements: List[MovementSchema]
    search: str = ""
    categories: List[str] = []
    payment_methods: List[str] = []
    entity_ids: List[str] = []
    directions: List[Direction] = []
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    period: Optional[Literal["today", "week", "month"]] = None
    today: Optional[date] = None


class BalancesRequest(BaseModel):
    """Request body for POST /v1/entities/balances"""

    entities: List[EntitySchema]
    movements: List[MovementSchema] = []


class BalancesResponse(BaseModel):
    balances: Dict[str, int]
    total_cents: int


class TransferRequest(BaseModel):
    """Request body for POST /v1/entities/transfer"""

    from_entity: EntitySchema
    to_entity: EntitySchema
    amount_cents: int = Field(..., gt=0)
    movements: List[MovementSchema] = []
    today: date
    transfer_id: Optional[str] = None


class TransferResponse(BaseModel):
    outgoing: MovementSchema
    incoming: MovementSchema
    balances: Dict[str, int]


class GoalProgressRequest(BaseModel):
    """Request body for POST /v1/goals/progress"""

    goals: List[GoalSchema]
    contributions: List[ContributionSchema] = []
    today: date


class GoalProgressSchema(DomainSchema):
    goal_id: str
    current_cents: int
    remaining_cents: int
    percentage: int
    overfunded: bool
    projected_completion: Optional[date]
