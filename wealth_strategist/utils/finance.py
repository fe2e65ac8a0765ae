"""
Loan and annuity arithmetic shared by the analyzers and the forecast engine.

Rates are annual decimals (``0.06`` = 6% p.a.).  Monthly compounding is used
for loan amortisation; annual compounding for retirement projections.
"""

from __future__ import annotations


def amortized_payment(principal: float, annual_rate: float, months: int) -> float:
    """Level monthly payment that repays ``principal`` over ``months``.

    ``payment = P·r(1+r)^n / ((1+r)^n − 1)`` with ``r = annual_rate / 12``.
    A zero rate degenerates to straight-line repayment.

    Raises:
        ValueError: If ``months`` is not positive.
    """
    if months <= 0:
        raise ValueError(f"months must be > 0, got {months}.")
    if principal <= 0:
        return 0.0
    r = annual_rate / 12.0
    if r == 0:
        return principal / months
    growth = (1.0 + r) ** months
    return principal * r * growth / (growth - 1.0)


def future_value(present: float, annual_contribution: float, rate: float, years: int) -> float:
    """Compound ``present`` forward, adding ``annual_contribution`` each year.

    Contributions are made at the start of each year:
    ``nw = (nw + contribution) · (1 + rate)``.
    """
    value = present
    for _ in range(max(0, years)):
        value = (value + annual_contribution) * (1.0 + rate)
    return value


def required_monthly_saving(target: float, present: float, rate: float, years: int) -> float:
    """Monthly saving needed for ``present`` to reach ``target`` in ``years``.

    Inverse of the future value of an ordinary annuity, converted to a
    monthly figure.  Returns 0 when growth on ``present`` alone closes the gap.
    """
    if years <= 0:
        return max(0.0, target - present) / 12.0
    growth = (1.0 + rate) ** years
    remaining = target - present * growth
    if remaining <= 0:
        return 0.0
    if rate == 0:
        return remaining / years / 12.0
    annuity_factor = (growth - 1.0) / rate
    return remaining / annuity_factor / 12.0
