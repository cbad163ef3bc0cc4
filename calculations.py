"""
Derived figures for the dashboard: loan installments, summary stats and
wallet balances. Everything here is pure and recomputed on demand.
"""
import math
from typing import Dict, Iterable, List, Optional

from config import settings

# Jan..May are fixed; the last month is replaced by live revenue
MONTHLY_REVENUE_SERIES = [
    ("Jan", 12500),
    ("Feb", 18200),
    ("Mar", 15800),
    ("Apr", 22400),
    ("May", 19600),
    ("Jun", 0),
]

CATEGORY_PALETTE = [
    "hsl(217, 91%, 60%)",
    "hsl(195, 80%, 50%)",
    "hsl(27, 87%, 55%)",
    "hsl(340, 82%, 52%)",
    "hsl(142, 71%, 45%)",
]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_emi(principal: float, duration: int, annual_rate: Optional[float] = None) -> int:
    """
    Fixed monthly installment for an amortizing loan, rounded to the
    nearest currency unit.

    The rate defaults to the configured LOAN_ANNUAL_RATE. Raises ValueError
    when duration is not a positive number of months or the figures are
    too large to represent. A zero rate falls back to straight-line repayment.
    """
    if duration <= 0:
        raise ValueError("Loan duration must be at least one month")
    if annual_rate is None:
        annual_rate = settings.LOAN_ANNUAL_RATE

    monthly_rate = annual_rate / 12 / 100
    try:
        if monthly_rate == 0:
            return _round_half_up(principal / duration)

        growth = math.pow(1 + monthly_rate, duration)
        emi = principal * monthly_rate * growth / (growth - 1)
        return _round_half_up(emi)
    except OverflowError:
        raise ValueError("Loan amount or duration is too large")


def quote_emi(principal: float, duration: int, annual_rate: Optional[float] = None) -> Dict:
    if annual_rate is None:
        annual_rate = settings.LOAN_ANNUAL_RATE
    emi = calculate_emi(principal, duration, annual_rate)
    total_payment = emi * duration
    return {
        "amount": principal,
        "duration": duration,
        "interest_rate": annual_rate,
        "emi": emi,
        "total_payment": total_payment,
        "total_interest": total_payment - principal,
    }


def total_revenue(orders: Iterable[Dict]) -> int:
    return sum(o.get("amount", 0) for o in orders if o.get("payment_status") == "paid")


def monthly_revenue(current: int, fallback: int) -> List[Dict]:
    series = [{"month": month, "revenue": revenue} for month, revenue in MONTHLY_REVENUE_SERIES]
    series[-1]["revenue"] = current or fallback
    return series


def category_breakdown(events: Iterable[Dict]) -> List[Dict]:
    counts: Dict[str, int] = {}
    for event in events:
        category = event.get("category")
        counts[category] = counts.get(category, 0) + 1

    return [
        {
            "category": category,
            "count": count,
            "fill": CATEGORY_PALETTE[i % len(CATEGORY_PALETTE)],
        }
        for i, (category, count) in enumerate(counts.items())
    ]


def build_dashboard_stats(
    events: List[Dict],
    orders: List[Dict],
    user_count: int,
    registered_users_offset: Optional[int] = None,
    fallback_revenue: Optional[int] = None,
) -> Dict:
    """Summary stats for the dashboard landing page."""
    if registered_users_offset is None:
        registered_users_offset = settings.REGISTERED_USERS_OFFSET
    if fallback_revenue is None:
        fallback_revenue = settings.FALLBACK_MONTHLY_REVENUE
    revenue = total_revenue(orders)
    return {
        "total_events": len(events),
        "active_events": sum(1 for e in events if e.get("status") == "active"),
        "registered_users": user_count + registered_users_offset,
        "total_revenue": revenue,
        "monthly_revenue": monthly_revenue(revenue, fallback_revenue),
        "category_breakdown": category_breakdown(events),
    }


def wallet_balance(transactions: Iterable[Dict], base_balance: Optional[int] = None) -> int:
    """Credits minus debits on top of the base balance, never below zero."""
    if base_balance is None:
        base_balance = settings.WALLET_BASE_BALANCE
    net = 0
    for t in transactions:
        if t.get("type") == "credit":
            net += t.get("amount", 0)
        else:
            net -= t.get("amount", 0)
    return max(0, net + base_balance)
