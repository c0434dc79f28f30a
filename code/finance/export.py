import csv
import io
from dataclasses import asdict
from typing import Any, Dict

from .schemas import ForecastResult, ForecastSummary

CSV_HEADERS = ["Month", "Income", "Expenses", "Debt Payment", "Cash", "Net Worth", "Investments", "Total Debt"]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(k): _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(v) for v in value]
    return value


def forecast_to_dict(result: ForecastResult) -> Dict[str, Any]:
    return _camelize(asdict(result))


def summary_to_dict(summary: ForecastSummary) -> Dict[str, Any]:
    return _camelize(asdict(summary))


def snapshots_to_csv(result: ForecastResult) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for s in result.snapshots:
        writer.writerow([
            s.month + 1,
            f"{s.total_income:.2f}",
            f"{s.total_expenses:.2f}",
            f"{s.total_debt_payment:.2f}",
            f"{s.cash:.2f}",
            f"{s.net_worth:.2f}",
            f"{s.total_investments:.2f}",
            f"{s.total_debt:.2f}",
        ])
    return buf.getvalue()
