import hashlib
import json
from typing import Any, Dict

from finance.debt import annual_interest_estimate, total_balance
from finance.export import summary_to_dict
from finance.schemas import ForecastResult, ScenarioInput
from finance.utils import r2

from .models import Preferences

HASH_LENGTH = 16


def total_monthly_income(scenario: ScenarioInput) -> float:
    return r2(sum(i.amount for i in scenario.incomes))


def total_monthly_expenses(scenario: ScenarioInput, *categories: str) -> float:
    return r2(sum(e.amount for e in scenario.expenses if e.category in categories))


def build_summary(scenario: ScenarioInput, forecast: ForecastResult, prefs: Preferences) -> Dict[str, Any]:
    """Condensed view of a run: prompt context for the LLM and the cache key source."""
    return {
        "currency": scenario.currency,
        "months": scenario.months,
        "totalMonthlyIncome": total_monthly_income(scenario),
        "totalMonthlyFixedExpenses": total_monthly_expenses(scenario, "fixed", "rent"),
        "totalMonthlyDiscretionary": total_monthly_expenses(scenario, "discretionary"),
        "totalDebtBalance": total_balance(scenario.debts),
        "totalDebtAnnualInterest": annual_interest_estimate(scenario.debts),
        "totalInvestmentValue": r2(sum(i.current_value for i in scenario.investments)),
        "totalMonthlyContribution": r2(sum(i.monthly_contribution for i in scenario.investments)),
        "forecast": summary_to_dict(forecast.summary),
        "preferences": {
            "baseCurrency": prefs.base_currency,
            "riskProfile": prefs.risk_profile,
            "emergencyFundMonths": prefs.emergency_fund_months,
            "advisorTone": prefs.advisor_tone,
        },
    }


def hash_summary(summary: Dict[str, Any]) -> str:
    payload = json.dumps(summary, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:HASH_LENGTH]
