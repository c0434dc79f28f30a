import math
from typing import Iterable


def r2(value: float) -> float:
    # half-up at two decimals; amounts read by callers must never carry more
    return math.floor(value * 100 + 0.5) / 100


def sum_r2(values: Iterable[float]) -> float:
    total = 0.0
    for v in values:
        total = r2(total + v)
    return total


def format_amount(currency: str, value: float) -> str:
    return f"{currency} {value:,.2f}"
