"""
Commission payability rules.

A commission is payable unless one of the rules below blocks it.
Rules run in a fixed order and the first one that blocks decides the
reason; only one reason is ever reported:

1. new_customers_only - partner pays only for a customer's first order
2. coupon_usage       - coupon discount must be fully used first
3. commission_period  - commission must still be inside its validity window

New rules are added by inserting a CommissionRule into COMMISSION_RULES.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional, Tuple

REASON_NEW_CUSTOMERS_ONLY = "Commission blocked: Partner only pays for new customers"
REASON_COUPON_NOT_USED = "Commission blocked: Coupon value not fully used"
REASON_OUTSIDE_PERIOD = "Commission blocked: Outside commission period"


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class PartnerPolicy:
    """The partner settings the rule chain reads."""

    new_customers_only: bool = False
    require_coupon_usage: bool = False
    commission_period_months: int = 12

    @classmethod
    def from_partner(cls, partner) -> "PartnerPolicy":
        return cls(
            new_customers_only=bool(partner.new_customers_only),
            require_coupon_usage=bool(partner.require_coupon_usage),
            commission_period_months=partner.commission_period_months,
        )


@dataclass(frozen=True)
class CommissionSnapshot:
    """The commission fields the rule chain reads."""

    coupon_code: Optional[str] = None
    coupon_value_used: Decimal = Decimal("0")
    coupon_value_required: Decimal = Decimal("0")
    commission_valid_until: Optional[datetime] = None

    @classmethod
    def from_commission(cls, commission) -> "CommissionSnapshot":
        return cls(
            coupon_code=commission.coupon_code,
            coupon_value_used=Decimal(commission.coupon_value_used or 0),
            coupon_value_required=Decimal(commission.coupon_value_required or 0),
            commission_valid_until=as_utc(commission.commission_valid_until),
        )


@dataclass(frozen=True)
class RuleDecision:
    """Outcome of the rule chain."""

    payable: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class RuleContext:
    policy: PartnerPolicy
    commission: CommissionSnapshot
    is_new_customer: bool
    now: datetime


@dataclass(frozen=True)
class CommissionRule:
    """A named predicate that blocks payment when it returns True."""

    name: str
    reason: str
    blocks: Callable[[RuleContext], bool]


def _blocks_returning_customer(ctx: RuleContext) -> bool:
    return ctx.policy.new_customers_only and not ctx.is_new_customer


def _blocks_unused_coupon(ctx: RuleContext) -> bool:
    if not ctx.policy.require_coupon_usage or not ctx.commission.coupon_code:
        return False
    return ctx.commission.coupon_value_used < ctx.commission.coupon_value_required


def _blocks_expired(ctx: RuleContext) -> bool:
    valid_until = as_utc(ctx.commission.commission_valid_until)
    # Equal to now is still inside the window
    return valid_until is not None and ctx.now > valid_until


COMMISSION_RULES: Tuple[CommissionRule, ...] = (
    CommissionRule("new_customers_only", REASON_NEW_CUSTOMERS_ONLY, _blocks_returning_customer),
    CommissionRule("coupon_usage", REASON_COUPON_NOT_USED, _blocks_unused_coupon),
    CommissionRule("commission_period", REASON_OUTSIDE_PERIOD, _blocks_expired),
)


def evaluate_commission(
    policy: PartnerPolicy,
    commission: CommissionSnapshot,
    is_new_customer: bool,
    now: Optional[datetime] = None,
    rules: Tuple[CommissionRule, ...] = COMMISSION_RULES,
) -> RuleDecision:
    """Decide whether a commission is payable.

    Pure function: no I/O, same inputs give the same decision.

    Args:
        policy: Partner policy at evaluation time
        commission: Commission fields the rules read
        is_new_customer: Whether this was the customer's first order
        now: Evaluation time (defaults to current UTC time)
        rules: Ordered rule chain

    Returns:
        RuleDecision with the first blocking rule's reason, or payable
    """
    ctx = RuleContext(
        policy=policy,
        commission=commission,
        is_new_customer=is_new_customer,
        now=as_utc(now) or datetime.now(timezone.utc),
    )

    for rule in rules:
        if rule.blocks(ctx):
            return RuleDecision(payable=False, reason=rule.reason)

    return RuleDecision(payable=True)
