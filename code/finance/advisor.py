"""Rule-based advisor.

Produces insights, alerts and actions from a scenario and its forecast
without calling any inference service. The output is a plain dict in the
advisor wire shape (``insights`` / ``alerts`` / ``actions``); the service
layer validates it against the strict response model before returning it.
"""
from typing import Any, Dict, List

from .debt import annual_interest_estimate, total_balance
from .schemas import ForecastResult, ScenarioInput
from .utils import format_amount, r2

MAX_INSIGHTS = 6
MAX_CASH_ALERTS = 5
EXPENSE_SPIKE_THRESHOLD = 0.2
DISCRETIONARY_CUT = 0.15
CONTRIBUTION_BOOST = 0.1
INTEREST_SAVED_SHARE = 0.4
GROWTH_FACTOR = 1.3


def _average_opening_expenses(forecast: ForecastResult) -> float:
    opening = forecast.snapshots[:3]
    if not opening:
        return 0.0
    return r2(sum(s.total_expenses for s in opening) / len(opening))


def _build_alerts(
    scenario: ScenarioInput,
    forecast: ForecastResult,
    interest_estimate: float,
    emergency_fund_months: int,
    emergency_target: float,
) -> List[Dict[str, Any]]:
    currency = scenario.currency
    summary = forecast.summary
    snapshots = forecast.snapshots
    alerts: List[Dict[str, Any]] = []

    for m in summary.negative_cash_months[:MAX_CASH_ALERTS]:
        alerts.append({
            "type": "cash",
            "message": f"Cash goes negative ({format_amount(currency, snapshots[m].cash)}) in month {m + 1}.",
            "monthIndex": m,
        })

    for i in range(1, len(snapshots)):
        prev = snapshots[i - 1].total_expenses
        curr = snapshots[i].total_expenses
        if prev > 0 and (curr - prev) / prev > EXPENSE_SPIKE_THRESHOLD:
            alerts.append({
                "type": "rent",
                "message": f"Expense spike of {r2(curr - prev):,.2f} {currency} in month {i + 1}.",
                "monthIndex": i,
            })
            break

    if interest_estimate > 0:
        alerts.append({
            "type": "debt",
            "message": (
                f"Estimated annual interest drag: {format_amount(currency, interest_estimate)}. "
                "Consider accelerating repayment."
            ),
            "monthIndex": 0,
        })

    if summary.end_cash < emergency_target:
        alerts.append({
            "type": "cash",
            "message": (
                f"Emergency buffer below target ({emergency_fund_months}x expenses = "
                f"{format_amount(currency, emergency_target)}). "
                f"Current end cash: {format_amount(currency, summary.end_cash)}."
            ),
            "monthIndex": max(0, len(snapshots) - 1),
        })

    return alerts


def _build_insights(scenario: ScenarioInput, forecast: ForecastResult, interest_estimate: float) -> List[Dict[str, Any]]:
    currency = scenario.currency
    summary = forecast.summary
    insights: List[Dict[str, Any]] = [{
        "title": "Projected net worth",
        "why": (
            "Based on current income, expenses, debt repayment, and investment growth "
            f"over {scenario.months} months."
        ),
        "impact_aed": summary.end_net_worth,
        "confidence": "high",
    }]

    if summary.debt_free_month is not None:
        month_label = summary.debt_free_month + 1
        insights.append({
            "title": f"Debt-free in month {month_label}",
            "why": (
                f"At current repayment pace all debts clear by month {month_label}, "
                f"saving ~{format_amount(currency, interest_estimate)} in future interest."
            ),
            "impact_aed": interest_estimate,
            "confidence": "med",
        })

    if summary.negative_cash_months:
        insights.append({
            "title": f"{len(summary.negative_cash_months)} months of negative cash",
            "why": (
                "Expenses + debt payments exceed income in these months. "
                "Consider reducing discretionary spending or delaying large payments."
            ),
            "impact_aed": r2(summary.min_cash),
            "confidence": "high",
        })

    if scenario.investments:
        total_contrib = r2(sum(inv.monthly_contribution for inv in scenario.investments))
        insights.append({
            "title": "Investment contributions active",
            "why": (
                f"Monthly contributions of {format_amount(currency, total_contrib)} compound over time. "
                f"Projected end value: {format_amount(currency, summary.end_investment_value)}."
            ),
            "impact_aed": summary.end_investment_value,
            "confidence": "med",
        })

    if len(insights) < 3:
        insights.append({
            "title": "Cash flow appears stable",
            "why": "No critical cash shortfalls detected over the forecast horizon.",
            "impact_aed": summary.min_cash,
            "confidence": "med",
        })

    return insights[:MAX_INSIGHTS]


def _build_actions(scenario: ScenarioInput, forecast: ForecastResult, interest_estimate: float) -> List[Dict[str, Any]]:
    # expected outcomes are closed-form estimates; nothing here re-runs the forecast
    actions: List[Dict[str, Any]] = []

    if total_balance(scenario.debts) > 0 and any(d.strategy != "aggressive" for d in scenario.debts):
        actions.append({
            "id": "aggressive-debt",
            "label": "Accelerate debt repayment",
            "changes": {"debtStrategy": "aggressive"},
            "expectedOutcome": {
                "netWorthDelta": r2(interest_estimate * INTEREST_SAVED_SHARE),
                "minCashDelta": r2(-scenario.debts[0].min_payment * 0.3),
            },
        })

    discretionary = [e for e in scenario.expenses if e.category == "discretionary"]
    if discretionary and forecast.summary.negative_cash_months:
        cut = r2(r2(sum(e.amount for e in discretionary)) * DISCRETIONARY_CUT)
        actions.append({
            "id": "reduce-discretionary",
            "label": "Reduce discretionary spending 15%",
            "changes": {
                "expenseAdjustments": [
                    {"expenseId": e.id, "delta": r2(-e.amount * DISCRETIONARY_CUT)} for e in discretionary
                ],
            },
            "expectedOutcome": {
                "netWorthDelta": r2(cut * scenario.months),
                "minCashDelta": r2(cut),
            },
        })

    if scenario.investments:
        first = scenario.investments[0]
        increase = first.monthly_contribution * CONTRIBUTION_BOOST
        actions.append({
            "id": "boost-investments",
            "label": "Increase investment contribution by 10%",
            "changes": {
                "investmentAdjustments": [{
                    "accountId": first.id,
                    "monthlyContributionDelta": r2(increase),
                    "expectedReturnDelta": 0,
                }],
            },
            "expectedOutcome": {
                "netWorthDelta": r2(increase * scenario.months * GROWTH_FACTOR),
                "minCashDelta": r2(-increase),
            },
        })

    return actions


def run_heuristic_advisor(
    scenario: ScenarioInput,
    forecast: ForecastResult,
    emergency_fund_months: int = 3,
) -> Dict[str, Any]:
    emergency_target = r2(_average_opening_expenses(forecast) * emergency_fund_months)
    interest_estimate = annual_interest_estimate(scenario.debts)

    return {
        "insights": _build_insights(scenario, forecast, interest_estimate),
        "alerts": _build_alerts(scenario, forecast, interest_estimate, emergency_fund_months, emergency_target),
        "actions": _build_actions(scenario, forecast, interest_estimate),
    }
