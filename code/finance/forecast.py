import logging
from typing import List, Optional

from .debt import DebtState, step_debt
from .schemas import (
    ExpenseInput,
    FinancialGoal,
    ForecastResult,
    ForecastSummary,
    GoalProgress,
    IncomeInput,
    MonthSnapshot,
    ScenarioInput,
)
from .utils import r2, sum_r2

logger = logging.getLogger(__name__)


def _is_active(start_month: int, end_month: Optional[int], month: int) -> bool:
    if month < start_month:
        return False
    if end_month is not None and month > end_month:
        return False
    return True


def _grown_amount(amount: float, growth_rate: float, month: int) -> float:
    # item growth steps once per elapsed year
    years = month // 12
    return r2(amount * (1 + growth_rate / 100.0) ** years)


def monthly_income(income: IncomeInput, month: int) -> float:
    if not _is_active(income.start_month, income.end_month, month):
        return 0.0
    return _grown_amount(income.amount, income.growth_rate, month)


def monthly_expense(expense: ExpenseInput, month: int) -> float:
    if not _is_active(expense.start_month, expense.end_month, month):
        return 0.0
    if expense.is_one_time and month != expense.start_month:
        return 0.0
    return _grown_amount(expense.amount, expense.growth_rate, month)


def step_investment(value: float, contribution: float, annual_return: float) -> float:
    monthly_rate = annual_return / 100.0 / 12.0
    return r2(value * (1 + monthly_rate) + contribution)


def _goal_metric(goal: FinancialGoal, cash: float, net_worth: float, investments: float) -> float:
    if goal.type == "savings":
        return cash
    if goal.type == "net_worth":
        return net_worth
    return investments


def compute_forecast(scenario: ScenarioInput) -> ForecastResult:
    """Simulate ``scenario`` month by month.

    Every monetary figure is rounded to cents as soon as it is produced, so
    later comparisons (minimum cash, goal crossings, debt-free detection)
    see exactly the values that end up in the snapshots.
    """
    cash = scenario.initial_cash
    debt_states = [DebtState.from_input(d) for d in scenario.debts]
    inv_values = [inv.current_value for inv in scenario.investments]
    monthly_inflation = scenario.inflation_rate / 100.0 / 12.0

    snapshots: List[MonthSnapshot] = []
    total_interest_paid = 0.0
    total_tax_paid = 0.0
    negative_cash_months: List[int] = []
    debt_free_month: Optional[int] = None
    min_cash = cash
    min_cash_month = 0
    goal_achieved: List[Optional[int]] = [None] * len(scenario.goals)

    for m in range(scenario.months):
        gross_income = r2(sum(monthly_income(inc, m) for inc in scenario.incomes))
        tax = r2(gross_income * (scenario.tax_rate / 100.0))
        net_income = r2(gross_income - tax)
        total_tax_paid = r2(total_tax_paid + tax)

        # macro inflation compounds monthly, unlike the yearly item growth
        inflation_multiplier = (1 + monthly_inflation) ** m
        total_expenses = r2(sum(monthly_expense(exp, m) * inflation_multiplier for exp in scenario.expenses))

        one_time_net = r2(sum(ev.amount for ev in scenario.one_time_events if ev.month == m))

        pre_debt_cash = r2(cash + net_income - total_expenses + one_time_net)

        total_debt_payment = 0.0
        interest_this_month = 0.0
        extra_cash = max(0.0, pre_debt_cash)
        for state in debt_states:
            payment, interest, new_balance = step_debt(state, extra_cash)
            state.balance = new_balance
            if new_balance <= 0:
                state.paid_off = True
            total_debt_payment = r2(total_debt_payment + payment)
            interest_this_month = r2(interest_this_month + interest)
        total_interest_paid = r2(total_interest_paid + interest_this_month)

        total_contrib = 0.0
        for i, inv in enumerate(scenario.investments):
            inv_values[i] = step_investment(inv_values[i], inv.monthly_contribution, inv.expected_annual_return)
            total_contrib = r2(total_contrib + inv.monthly_contribution)

        cash = r2(pre_debt_cash - total_debt_payment - total_contrib)
        if cash < min_cash:
            min_cash = cash
            min_cash_month = m
        if cash < 0:
            negative_cash_months.append(m)

        total_debt = r2(sum(state.balance for state in debt_states))
        total_investments = r2(sum(inv_values))
        net_worth = r2(cash + total_investments - total_debt)

        if debt_free_month is None and total_debt == 0 and debt_states:
            debt_free_month = m

        for gi, goal in enumerate(scenario.goals):
            if goal_achieved[gi] is not None:
                continue
            if _goal_metric(goal, cash, net_worth, total_investments) >= goal.target_amount:
                goal_achieved[gi] = m

        snapshots.append(
            MonthSnapshot(
                month=m,
                cash=cash,
                net_worth=net_worth,
                total_debt=total_debt,
                total_investments=total_investments,
                total_income=net_income,
                total_expenses=total_expenses,
                total_debt_payment=total_debt_payment,
                total_investment_contribution=total_contrib,
            )
        )

    if snapshots:
        last = snapshots[-1]
        end_cash, end_net_worth, end_investments = last.cash, last.net_worth, last.total_investments
    else:
        logger.debug("scenario %s has an empty horizon", scenario.id)
        end_cash = r2(cash)
        end_investments = sum_r2(inv_values)
        end_net_worth = r2(end_cash + end_investments - sum_r2(d.balance for d in debt_states))

    goal_progress: List[GoalProgress] = []
    for gi, goal in enumerate(scenario.goals):
        achieved = goal_achieved[gi]
        if snapshots:
            at_target = snapshots[min(goal.target_month, len(snapshots) - 1)]
            end_value = _goal_metric(goal, at_target.cash, at_target.net_worth, at_target.total_investments)
        else:
            end_value = _goal_metric(goal, end_cash, end_net_worth, end_investments)
        goal_progress.append(
            GoalProgress(
                goal_id=goal.id,
                label=goal.label,
                target_amount=goal.target_amount,
                target_month=goal.target_month,
                achieved_month=achieved,
                end_value=end_value,
                on_track=achieved is not None and achieved <= goal.target_month,
            )
        )

    summary = ForecastSummary(
        end_cash=end_cash,
        end_net_worth=end_net_worth,
        min_cash=min_cash,
        min_cash_month=min_cash_month,
        negative_cash_months=negative_cash_months,
        debt_free_month=debt_free_month,
        total_interest_paid=total_interest_paid,
        end_investment_value=end_investments,
        total_tax_paid=total_tax_paid,
    )
    return ForecastResult(snapshots=snapshots, summary=summary, goal_progress=goal_progress)
