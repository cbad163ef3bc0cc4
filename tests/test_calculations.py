import pytest

from calculations import (
    CATEGORY_PALETTE,
    build_dashboard_stats,
    calculate_emi,
    category_breakdown,
    quote_emi,
    wallet_balance,
)
from config import settings


def test_emi_matches_seeded_loan():
    # the seeded approved loan shows 438 for 5000 over 12 months
    assert abs(calculate_emi(5000, 12) - 438) <= 2


def test_emi_known_value():
    assert calculate_emi(5000, 12, 8.5) == 436
    assert calculate_emi(100000, 60, 8.5) == 2052


def test_emi_increases_with_principal():
    previous = 0
    for principal in range(1000, 100001, 1000):
        emi = calculate_emi(principal, 24)
        assert emi >= previous
        previous = emi
    assert calculate_emi(20000, 24) > calculate_emi(10000, 24)


def test_emi_zero_duration_is_rejected():
    with pytest.raises(ValueError):
        calculate_emi(5000, 0)
    with pytest.raises(ValueError):
        calculate_emi(5000, 0, 0)


def test_emi_zero_rate_is_straight_line():
    assert calculate_emi(1200, 12, 0) == 100


def test_emi_overflowing_duration_is_rejected():
    assert calculate_emi(5000, 600) > 0
    with pytest.raises(ValueError):
        calculate_emi(5000, 200000)


def test_defaults_follow_settings(monkeypatch):
    monkeypatch.setattr(settings, "LOAN_ANNUAL_RATE", 0)
    monkeypatch.setattr(settings, "WALLET_BASE_BALANCE", 0)
    monkeypatch.setattr(settings, "REGISTERED_USERS_OFFSET", 0)
    monkeypatch.setattr(settings, "FALLBACK_MONTHLY_REVENUE", 1)

    assert calculate_emi(1200, 12) == 100
    assert quote_emi(1200, 12)["interest_rate"] == 0
    assert wallet_balance([{"type": "credit", "amount": 40}]) == 40
    stats = build_dashboard_stats([], [], user_count=3)
    assert stats["registered_users"] == 3
    assert stats["monthly_revenue"][-1]["revenue"] == 1


def test_quote_totals():
    quote = quote_emi(5000, 12)
    assert quote["emi"] == 436
    assert quote["total_payment"] == 436 * 12
    assert quote["total_interest"] == 436 * 12 - 5000
    assert quote["interest_rate"] == 8.5


def test_dashboard_revenue_counts_only_paid_orders():
    orders = [
        {"amount": 100, "payment_status": "paid"},
        {"amount": 50, "payment_status": "pending"},
        {"amount": 75, "payment_status": "paid"},
        {"amount": 200, "payment_status": "failed"},
    ]
    stats = build_dashboard_stats([], orders, user_count=1)
    assert stats["total_revenue"] == 175
    assert stats["monthly_revenue"][-1] == {"month": "Jun", "revenue": 175}

    orders[1]["payment_status"] = "paid"
    assert build_dashboard_stats([], orders, user_count=1)["total_revenue"] == 225


def test_dashboard_fallback_revenue_when_nothing_paid():
    stats = build_dashboard_stats([], [], user_count=1)
    assert stats["total_revenue"] == 0
    assert stats["monthly_revenue"][-1]["revenue"] == 24800
    assert [m["month"] for m in stats["monthly_revenue"]] == ["Jan", "Feb", "Mar", "Apr", "May", "Jun"]


def test_dashboard_counts_and_offset():
    events = [
        {"category": "music", "status": "active"},
        {"category": "tech", "status": "upcoming"},
        {"category": "music", "status": "active"},
    ]
    stats = build_dashboard_stats(events, [], user_count=1, registered_users_offset=145)
    assert stats["total_events"] == 3
    assert stats["active_events"] == 2
    assert stats["registered_users"] == 146


def test_category_palette_cycles():
    events = [{"category": f"c{i}"} for i in range(7)] + [{"category": "c0"}]
    breakdown = category_breakdown(events)
    assert breakdown[0] == {"category": "c0", "count": 2, "fill": CATEGORY_PALETTE[0]}
    assert breakdown[5]["fill"] == CATEGORY_PALETTE[0]
    assert breakdown[6]["fill"] == CATEGORY_PALETTE[1]


def test_wallet_balance():
    transactions = [
        {"type": "credit", "amount": 500},
        {"type": "debit", "amount": 150},
    ]
    assert wallet_balance(transactions, base_balance=2500) == 2850


def test_wallet_balance_never_negative():
    assert wallet_balance([{"type": "debit", "amount": 10000}], base_balance=2500) == 0
