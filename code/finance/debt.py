from dataclasses import dataclass
from typing import Iterable, Tuple

from .schemas import DebtInput, DebtStrategy
from .utils import r2

AGGRESSIVE_SURPLUS_SHARE = 0.3


@dataclass
class DebtState:
    balance: float
    annual_rate: float
    min_payment: float
    strategy: DebtStrategy
    paid_off: bool = False

    @classmethod
    def from_input(cls, debt: DebtInput) -> "DebtState":
        return cls(
            balance=debt.balance,
            annual_rate=debt.annual_rate,
            min_payment=debt.min_payment,
            strategy=debt.strategy,
            paid_off=False,
        )


def monthly_interest(balance: float, annual_rate: float) -> float:
    return r2(balance * (annual_rate / 100.0 / 12.0))


def step_debt(state: DebtState, extra_cash: float) -> Tuple[float, float, float]:
    """Advance one debt by a month.

    Returns ``(payment, interest, new_balance)``. Interest accrues on the
    opening balance before the payment is applied. ``extra_cash`` is the
    month's pre-debt surplus and is the same figure for every debt.
    """
    if state.paid_off or state.balance <= 0:
        return 0.0, 0.0, 0.0

    interest = monthly_interest(state.balance, state.annual_rate)
    owed = state.balance + interest
    if state.strategy == "instant":
        payment = r2(owed)
    elif state.strategy == "aggressive":
        payment = r2(min(owed, state.min_payment + max(0.0, extra_cash * AGGRESSIVE_SURPLUS_SHARE)))
    else:
        # "min" and anything unrecognised pay the minimum
        payment = r2(min(owed, state.min_payment))

    new_balance = r2(max(0.0, owed - payment))
    return payment, interest, new_balance


def annual_interest_estimate(debts: Iterable[DebtInput]) -> float:
    # rough figure from opening balances, not the simulated interest
    return r2(sum(d.balance * (d.annual_rate / 100.0) for d in debts))


def total_balance(debts: Iterable[DebtInput]) -> float:
    return r2(sum(d.balance for d in debts))
