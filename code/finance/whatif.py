from dataclasses import replace
from typing import Any, Dict, Optional

from .schemas import ForecastResult, ScenarioInput
from .utils import r2

QUICK_ADJUST_MIN_PCT = -50.0
QUICK_ADJUST_MAX_PCT = 100.0


def _scaled(base: float, pct: float) -> float:
    pct = min(max(pct, QUICK_ADJUST_MIN_PCT), QUICK_ADJUST_MAX_PCT)
    return max(0.0, base * (1 + pct / 100.0))


def apply_quick_adjustments(
    scenario: ScenarioInput,
    income_pct: float = 0.0,
    expense_pct: float = 0.0,
    invest_pct: float = 0.0,
) -> ScenarioInput:
    """Scale every income, expense and contribution line by a percentage.

    Percentages are clamped to the -50..+100 slider range.
    """
    if income_pct == 0 and expense_pct == 0 and invest_pct == 0:
        return scenario
    return replace(
        scenario,
        incomes=[replace(i, amount=_scaled(i.amount, income_pct)) for i in scenario.incomes],
        expenses=[replace(e, amount=_scaled(e.amount, expense_pct)) for e in scenario.expenses],
        investments=[
            replace(inv, monthly_contribution=_scaled(inv.monthly_contribution, invest_pct))
            for inv in scenario.investments
        ],
    )


def apply_action_changes(scenario: ScenarioInput, changes: Optional[Dict[str, Any]]) -> ScenarioInput:
    """Return a copy of ``scenario`` with an advisor action's ``changes`` applied.

    ``changes`` uses the advisor wire keys (``debtStrategy``,
    ``expenseAdjustments`` and so on). Adjusted amounts never go below zero and
    adjustments naming unknown line ids are ignored.
    """
    if not changes:
        return scenario
    updated = scenario

    strategy = changes.get("debtStrategy")
    if strategy:
        updated = replace(updated, debts=[replace(d, strategy=strategy) for d in updated.debts])

    expense_deltas = {a["expenseId"]: a["delta"] for a in changes.get("expenseAdjustments") or []}
    if expense_deltas:
        updated = replace(updated, expenses=[
            replace(e, amount=max(0.0, e.amount + expense_deltas[e.id])) if e.id in expense_deltas else e
            for e in updated.expenses
        ])

    income_deltas = {a["incomeId"]: a["delta"] for a in changes.get("incomeAdjustments") or []}
    if income_deltas:
        updated = replace(updated, incomes=[
            replace(i, amount=max(0.0, i.amount + income_deltas[i.id])) if i.id in income_deltas else i
            for i in updated.incomes
        ])

    inv_adjustments = {a["accountId"]: a for a in changes.get("investmentAdjustments") or []}
    if inv_adjustments:
        investments = []
        for inv in updated.investments:
            adj = inv_adjustments.get(inv.id)
            if adj is None:
                investments.append(inv)
                continue
            investments.append(replace(
                inv,
                monthly_contribution=max(0.0, inv.monthly_contribution + adj.get("monthlyContributionDelta", 0)),
                expected_annual_return=max(0.0, inv.expected_annual_return + adj.get("expectedReturnDelta", 0)),
            ))
        updated = replace(updated, investments=investments)

    return updated


def compare_forecasts(base: ForecastResult, adjusted: ForecastResult) -> Dict[str, float]:
    return {
        "endNetWorthDelta": r2(adjusted.summary.end_net_worth - base.summary.end_net_worth),
        "endCashDelta": r2(adjusted.summary.end_cash - base.summary.end_cash),
        "minCashDelta": r2(adjusted.summary.min_cash - base.summary.min_cash),
    }
