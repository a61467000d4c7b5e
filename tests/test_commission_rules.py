"""
Tests for the commission payability rule chain.

Covers:
- Each rule blocking on its own
- Priority when several rules fail at once
- Validity window boundary
- Snapshot construction from ORM-like objects
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from affiliatehub.services.commission_rules import (
    COMMISSION_RULES,
    REASON_COUPON_NOT_USED,
    REASON_NEW_CUSTOMERS_ONLY,
    REASON_OUTSIDE_PERIOD,
    CommissionRule,
    CommissionSnapshot,
    PartnerPolicy,
    RuleDecision,
    evaluate_commission,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _snapshot(**kwargs):
    defaults = {
        "coupon_code": None,
        "coupon_value_used": Decimal("0"),
        "coupon_value_required": Decimal("0"),
        "commission_valid_until": NOW + timedelta(days=365),
    }
    defaults.update(kwargs)
    return CommissionSnapshot(**defaults)


class TestRuleOrder:
    def test_chain_order(self):
        assert [rule.name for rule in COMMISSION_RULES] == [
            "new_customers_only",
            "coupon_usage",
            "commission_period",
        ]

    def test_new_customer_rule_wins_over_expiry(self):
        decision = evaluate_commission(
            PartnerPolicy(new_customers_only=True),
            _snapshot(commission_valid_until=NOW - timedelta(days=1)),
            is_new_customer=False,
            now=NOW,
        )
        assert decision == RuleDecision(payable=False, reason=REASON_NEW_CUSTOMERS_ONLY)
        assert "new customers" in decision.reason

    def test_coupon_rule_wins_over_expiry(self):
        decision = evaluate_commission(
            PartnerPolicy(require_coupon_usage=True),
            _snapshot(
                coupon_code="SAVE20",
                coupon_value_required=Decimal("20"),
                commission_valid_until=NOW - timedelta(days=1),
            ),
            is_new_customer=True,
            now=NOW,
        )
        assert decision.reason == REASON_COUPON_NOT_USED

    def test_custom_rule_appended(self):
        never_on_sunday = CommissionRule("weekday", "Commission blocked: Sunday", lambda ctx: ctx.now.weekday() == 6)
        sunday = datetime(2026, 6, 7, tzinfo=timezone.utc)
        decision = evaluate_commission(
            PartnerPolicy(),
            _snapshot(commission_valid_until=sunday + timedelta(days=1)),
            is_new_customer=True,
            now=sunday,
            rules=COMMISSION_RULES + (never_on_sunday,),
        )
        assert decision.reason == "Commission blocked: Sunday"


class TestNewCustomerRule:
    def test_returning_customer_blocked(self):
        decision = evaluate_commission(PartnerPolicy(new_customers_only=True), _snapshot(), False, now=NOW)
        assert not decision.payable

    def test_new_customer_payable(self):
        decision = evaluate_commission(PartnerPolicy(new_customers_only=True), _snapshot(), True, now=NOW)
        assert decision == RuleDecision(payable=True, reason=None)

    def test_policy_off_pays_returning_customer(self):
        decision = evaluate_commission(PartnerPolicy(), _snapshot(), False, now=NOW)
        assert decision.payable


class TestCouponUsageRule:
    @pytest.mark.parametrize(
        "used, payable",
        [
            (Decimal("0"), False),
            (Decimal("19.99"), False),
            (Decimal("20.00"), True),
            (Decimal("25.00"), True),
        ],
    )
    def test_threshold(self, used, payable):
        decision = evaluate_commission(
            PartnerPolicy(require_coupon_usage=True),
            _snapshot(
                coupon_code="SAVE20",
                coupon_value_used=used,
                coupon_value_required=Decimal("20.00"),
            ),
            is_new_customer=True,
            now=NOW,
        )
        assert decision.payable is payable

    def test_no_coupon_code_is_not_gated(self):
        decision = evaluate_commission(
            PartnerPolicy(require_coupon_usage=True),
            _snapshot(coupon_value_required=Decimal("20")),
            is_new_customer=True,
            now=NOW,
        )
        assert decision.payable

    def test_policy_off_ignores_usage(self):
        decision = evaluate_commission(
            PartnerPolicy(require_coupon_usage=False),
            _snapshot(coupon_code="SAVE20", coupon_value_required=Decimal("20")),
            is_new_customer=True,
            now=NOW,
        )
        assert decision.payable


class TestCommissionPeriodRule:
    def test_exactly_at_valid_until_is_not_expired(self):
        decision = evaluate_commission(PartnerPolicy(), _snapshot(commission_valid_until=NOW), True, now=NOW)
        assert decision.payable

    def test_one_microsecond_past_is_blocked(self):
        decision = evaluate_commission(
            PartnerPolicy(),
            _snapshot(commission_valid_until=NOW),
            True,
            now=NOW + timedelta(microseconds=1),
        )
        assert decision == RuleDecision(payable=False, reason=REASON_OUTSIDE_PERIOD)

    def test_naive_valid_until_treated_as_utc(self):
        naive = NOW.replace(tzinfo=None)
        decision = evaluate_commission(PartnerPolicy(), _snapshot(commission_valid_until=naive), True, now=NOW)
        assert decision.payable

    def test_naive_valid_until_in_the_past_is_blocked(self):
        naive = (NOW - timedelta(seconds=1)).replace(tzinfo=None)
        snapshot = CommissionSnapshot(commission_valid_until=naive)
        decision = evaluate_commission(PartnerPolicy(), snapshot, True, now=NOW)
        assert decision.reason == REASON_OUTSIDE_PERIOD

    def test_no_window_never_expires(self):
        decision = evaluate_commission(PartnerPolicy(), _snapshot(commission_valid_until=None), True, now=NOW)
        assert decision.payable


class TestSnapshots:
    def test_policy_from_partner(self):
        partner = SimpleNamespace(
            new_customers_only=True,
            require_coupon_usage=False,
            commission_period_months=6,
        )
        assert PartnerPolicy.from_partner(partner) == PartnerPolicy(True, False, 6)

    def test_snapshot_from_commission(self):
        commission = SimpleNamespace(
            coupon_code="SAVE20",
            coupon_value_used=Decimal("5.00"),
            coupon_value_required=Decimal("20.00"),
            commission_valid_until=NOW.replace(tzinfo=None),
        )
        snapshot = CommissionSnapshot.from_commission(commission)
        assert snapshot.coupon_value_used == Decimal("5.00")
        assert snapshot.commission_valid_until == NOW

    def test_snapshots_are_frozen(self):
        policy = PartnerPolicy()
        with pytest.raises(AttributeError):
            policy.new_customers_only = True
