from dataclasses import asdict
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from finance.schemas import (
    DebtInput,
    ExpenseInput,
    FinancialGoal,
    ForecastResult,
    IncomeInput,
    InvestmentInput,
    OneTimeEvent,
    ScenarioInput,
)

WIRE_CONFIG = ConfigDict(populate_by_name=True)
STRICT_CONFIG = ConfigDict(populate_by_name=True, extra="forbid", allow_inf_nan=False)


# Scenario request


class Income(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    label: str
    amount: float
    start_month: int = Field(default=0, ge=0, alias="startMonth")
    end_month: Optional[int] = Field(default=None, ge=0, alias="endMonth")
    growth_rate: float = Field(default=0.0, alias="growthRate")


class Expense(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    label: str
    amount: float
    category: Literal["fixed", "discretionary", "rent"] = "fixed"
    start_month: int = Field(default=0, ge=0, alias="startMonth")
    end_month: Optional[int] = Field(default=None, ge=0, alias="endMonth")
    growth_rate: float = Field(default=0.0, alias="growthRate")
    is_one_time: bool = Field(default=False, alias="isOneTime")


class Debt(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    label: str
    balance: float = Field(ge=0)
    annual_rate: float = Field(ge=0, alias="annualRate")
    min_payment: float = Field(ge=0, alias="minPayment")
    strategy: Literal["min", "aggressive", "instant"] = "min"


class Investment(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    label: str
    current_value: float = Field(ge=0, alias="currentValue")
    monthly_contribution: float = Field(default=0.0, ge=0, alias="monthlyContribution")
    expected_annual_return: float = Field(default=7.0, alias="expectedAnnualReturn")


class CashEvent(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    label: str
    amount: float
    month: int = Field(ge=0)


class Goal(BaseModel):
    model_config = WIRE_CONFIG

    id: str
    label: str
    target_amount: float = Field(alias="targetAmount")
    target_month: int = Field(ge=0, alias="targetMonth")
    type: Literal["savings", "net_worth", "investment"] = "savings"


class Scenario(BaseModel):
    model_config = WIRE_CONFIG

    id: str = "scenario"
    currency: str = Field(default="AED", min_length=3, max_length=3)
    months: int = Field(default=60, ge=1, le=360)
    initial_cash: float = Field(default=0.0, ge=0, alias="initialCash")
    incomes: List[Income] = []
    expenses: List[Expense] = []
    debts: List[Debt] = []
    investments: List[Investment] = []
    inflation_rate: float = Field(default=0.0, alias="inflationRate")
    tax_rate: float = Field(default=0.0, ge=0, le=100, alias="taxRate")
    one_time_events: List[CashEvent] = Field(default=[], alias="oneTimeEvents")
    goals: List[Goal] = []

    def to_input(self) -> ScenarioInput:
        return ScenarioInput(
            id=self.id,
            currency=self.currency,
            months=self.months,
            initial_cash=self.initial_cash,
            incomes=[IncomeInput(**i.model_dump()) for i in self.incomes],
            expenses=[ExpenseInput(**e.model_dump()) for e in self.expenses],
            debts=[DebtInput(**d.model_dump()) for d in self.debts],
            investments=[InvestmentInput(**inv.model_dump()) for inv in self.investments],
            inflation_rate=self.inflation_rate,
            tax_rate=self.tax_rate,
            one_time_events=[OneTimeEvent(**ev.model_dump()) for ev in self.one_time_events],
            goals=[FinancialGoal(**g.model_dump()) for g in self.goals],
        )


class Preferences(BaseModel):
    model_config = WIRE_CONFIG

    base_currency: str = Field(default="AED", alias="baseCurrency")
    risk_profile: Literal["low", "med", "high"] = Field(default="med", alias="riskProfile")
    emergency_fund_months: int = Field(default=3, ge=1, le=24, alias="emergencyFundMonths")
    advisor_tone: Literal["concise", "neutral"] = Field(default="concise", alias="advisorTone")


# Forecast response


class Snapshot(BaseModel):
    model_config = WIRE_CONFIG

    month: int
    cash: float
    net_worth: float = Field(alias="netWorth")
    total_debt: float = Field(alias="totalDebt")
    total_investments: float = Field(alias="totalInvestments")
    total_income: float = Field(alias="totalIncome")
    total_expenses: float = Field(alias="totalExpenses")
    total_debt_payment: float = Field(alias="totalDebtPayment")
    total_investment_contribution: float = Field(alias="totalInvestmentContribution")


class Summary(BaseModel):
    model_config = WIRE_CONFIG

    end_cash: float = Field(alias="endCash")
    end_net_worth: float = Field(alias="endNetWorth")
    min_cash: float = Field(alias="minCash")
    min_cash_month: int = Field(alias="minCashMonth")
    negative_cash_months: List[int] = Field(alias="negativeCashMonths")
    debt_free_month: Optional[int] = Field(alias="debtFreeMonth")
    total_interest_paid: float = Field(alias="totalInterestPaid")
    end_investment_value: float = Field(alias="endInvestmentValue")
    total_tax_paid: float = Field(alias="totalTaxPaid")


class GoalStatus(BaseModel):
    model_config = WIRE_CONFIG

    goal_id: str = Field(alias="goalId")
    label: str
    target_amount: float = Field(alias="targetAmount")
    target_month: int = Field(alias="targetMonth")
    achieved_month: Optional[int] = Field(alias="achievedMonth")
    end_value: float = Field(alias="endValue")
    on_track: bool = Field(alias="onTrack")


class ForecastResponse(BaseModel):
    model_config = WIRE_CONFIG

    snapshots: List[Snapshot]
    summary: Summary
    goal_progress: List[GoalStatus] = Field(alias="goalProgress")

    @classmethod
    def from_result(cls, result: ForecastResult) -> "ForecastResponse":
        return cls.model_validate(asdict(result))


# Advisor response: the fixed contract every advisory strategy must satisfy.


class Insight(BaseModel):
    model_config = STRICT_CONFIG

    title: str
    why: str
    impact_aed: float
    confidence: Literal["low", "med", "high"]


class Alert(BaseModel):
    model_config = STRICT_CONFIG

    type: Literal["cash", "debt", "rent", "fx", "portfolio"]
    message: str
    month_index: int = Field(ge=0, alias="monthIndex")


class ExpenseAdjustment(BaseModel):
    model_config = STRICT_CONFIG

    expense_id: str = Field(alias="expenseId")
    delta: float


class IncomeAdjustment(BaseModel):
    model_config = STRICT_CONFIG

    income_id: str = Field(alias="incomeId")
    delta: float


class InvestmentAdjustment(BaseModel):
    model_config = STRICT_CONFIG

    account_id: str = Field(alias="accountId")
    monthly_contribution_delta: float = Field(alias="monthlyContributionDelta")
    expected_return_delta: float = Field(alias="expectedReturnDelta")


class FxOverride(BaseModel):
    model_config = STRICT_CONFIG

    from_currency: str = Field(alias="from")
    to_currency: str = Field(alias="to")
    rate: float


class ActionChanges(BaseModel):
    model_config = STRICT_CONFIG

    debt_strategy: Optional[Literal["min", "aggressive", "instant"]] = Field(default=None, alias="debtStrategy")
    expense_adjustments: Optional[List[ExpenseAdjustment]] = Field(default=None, alias="expenseAdjustments")
    income_adjustments: Optional[List[IncomeAdjustment]] = Field(default=None, alias="incomeAdjustments")
    investment_adjustments: Optional[List[InvestmentAdjustment]] = Field(default=None, alias="investmentAdjustments")
    fx_override: Optional[FxOverride] = Field(default=None, alias="fxOverride")


class ExpectedOutcome(BaseModel):
    model_config = STRICT_CONFIG

    net_worth_delta: float = Field(alias="netWorthDelta")
    min_cash_delta: float = Field(alias="minCashDelta")


class AdvisorAction(BaseModel):
    model_config = STRICT_CONFIG

    id: str
    label: str
    changes: ActionChanges
    expected_outcome: ExpectedOutcome = Field(alias="expectedOutcome")


class AdvisorResponse(BaseModel):
    model_config = STRICT_CONFIG

    insights: List[Insight] = Field(min_length=1, max_length=6)
    alerts: List[Alert]
    actions: List[AdvisorAction]

    def to_wire(self) -> Dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# Endpoint envelopes


class AdvisorRequest(BaseModel):
    model_config = WIRE_CONFIG

    scenario: Scenario
    preferences: Preferences = Field(default_factory=Preferences)


class AdvisorMeta(BaseModel):
    model_config = WIRE_CONFIG

    model: str
    input_hash: str = Field(alias="inputHash")
    from_cache: bool = Field(alias="fromCache")
    run_at: str = Field(alias="runAt")


class WhatIfRequest(BaseModel):
    model_config = WIRE_CONFIG

    scenario: Scenario
    changes: Optional[ActionChanges] = None
    income_pct: float = Field(default=0.0, ge=-50, le=100, alias="incomePct")
    expense_pct: float = Field(default=0.0, ge=-50, le=100, alias="expensePct")
    invest_pct: float = Field(default=0.0, ge=-50, le=100, alias="investPct")
