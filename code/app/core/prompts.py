from typing import Any, Dict

SYSTEM_PROMPT = (
    "You are a financial planning assistant. Provide informational insights based ONLY on the "
    "numbers provided. Output strict JSON matching the schema. No external facts, no stock picks, "
    "no market predictions. All amounts in the user's base currency."
)


def _negative_months(forecast: Dict[str, Any]) -> str:
    months = forecast.get("negativeCashMonths") or []
    if not months:
        return "none"
    return ",".join(str(m) for m in months[:5])


def build_user_prompt(summary: Dict[str, Any]) -> str:
    forecast = summary["forecast"]
    prefs = summary["preferences"]
    debt_free = forecast.get("debtFreeMonth")
    return f"""
Scenario ({summary['months']} months, currency: {summary['currency']}):
- Monthly income: {summary['totalMonthlyIncome']}
- Fixed expenses: {summary['totalMonthlyFixedExpenses']}, Discretionary: {summary['totalMonthlyDiscretionary']}
- Total debt: {summary['totalDebtBalance']}, Annual interest: {summary['totalDebtAnnualInterest']}
- Investment value: {summary['totalInvestmentValue']}, Monthly contribution: {summary['totalMonthlyContribution']}
- Base currency: {prefs['baseCurrency']}, Risk profile: {prefs['riskProfile']}, Emergency fund target: {prefs['emergencyFundMonths']} months
Forecast summary:
- End net worth: {forecast['endNetWorth']}, End cash: {forecast['endCash']}
- Min cash: {forecast['minCash']} (month {forecast['minCashMonth']})
- Negative cash months: {_negative_months(forecast)}
- Debt-free month: {'not reached' if debt_free is None else debt_free}
- Total interest paid: {forecast['totalInterestPaid']}
- End investment value: {forecast['endInvestmentValue']}

Return ONLY this JSON structure (no markdown, no extra keys):
{{
  "insights": [{{"title":"","why":"","impact_aed":0,"confidence":"low|med|high"}}],
  "alerts": [{{"type":"cash|debt|rent|fx|portfolio","message":"","monthIndex":0}}],
  "actions": [{{"id":"","label":"","changes":{{}},"expectedOutcome":{{"netWorthDelta":0,"minCashDelta":0}}}}]
}}
Max 6 insights, all amounts as numbers. Tone: {prefs['advisorTone']}.
DISCLAIMER REMINDER: Output is informational only. Do not claim to predict markets.
""".strip()
