from dataclasses import dataclass, field
from typing import List, Literal, Optional

ExpenseCategory = Literal["fixed", "discretionary", "rent"]
DebtStrategy = Literal["min", "aggressive", "instant"]
GoalType = Literal["savings", "net_worth", "investment"]


@dataclass
class IncomeInput:
    id: str
    label: str
    amount: float
    start_month: int = 0
    end_month: Optional[int] = None
    growth_rate: float = 0.0  # annual %


@dataclass
class ExpenseInput:
    id: str
    label: str
    amount: float
    category: ExpenseCategory = "fixed"
    start_month: int = 0
    end_month: Optional[int] = None
    growth_rate: float = 0.0  # annual %
    is_one_time: bool = False


@dataclass
class DebtInput:
    id: str
    label: str
    balance: float
    annual_rate: float
    min_payment: float
    strategy: DebtStrategy = "min"


@dataclass
class InvestmentInput:
    id: str
    label: str
    current_value: float
    monthly_contribution: float = 0.0
    expected_annual_return: float = 0.0  # annual %, compounded monthly


@dataclass
class OneTimeEvent:
    id: str
    label: str
    amount: float  # positive = inflow
    month: int


@dataclass
class FinancialGoal:
    id: str
    label: str
    target_amount: float
    target_month: int
    type: GoalType = "savings"


@dataclass
class ScenarioInput:
    currency: str
    months: int
    initial_cash: float
    incomes: List[IncomeInput] = field(default_factory=list)
    expenses: List[ExpenseInput] = field(default_factory=list)
    debts: List[DebtInput] = field(default_factory=list)
    investments: List[InvestmentInput] = field(default_factory=list)
    inflation_rate: float = 0.0
    tax_rate: float = 0.0
    one_time_events: List[OneTimeEvent] = field(default_factory=list)
    goals: List[FinancialGoal] = field(default_factory=list)
    id: str = "scenario"


# Outputs are dataclasses; the service layer maps them onto camelCase wire models.


@dataclass
class MonthSnapshot:
    month: int
    cash: float
    net_worth: float
    total_debt: float
    total_investments: float
    total_income: float
    total_expenses: float
    total_debt_payment: float
    total_investment_contribution: float


@dataclass
class GoalProgress:
    goal_id: str
    label: str
    target_amount: float
    target_month: int
    achieved_month: Optional[int]
    end_value: float
    on_track: bool


@dataclass
class ForecastSummary:
    end_cash: float
    end_net_worth: float
    min_cash: float
    min_cash_month: int
    negative_cash_months: List[int]
    debt_free_month: Optional[int]
    total_interest_paid: float
    end_investment_value: float
    total_tax_paid: float


@dataclass
class ForecastResult:
    snapshots: List[MonthSnapshot]
    summary: ForecastSummary
    goal_progress: List[GoalProgress] = field(default_factory=list)
