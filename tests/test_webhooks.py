"""
Tests for the conversion, coupon-usage and tracking endpoints.
"""

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from affiliatehub.api import webhooks
from affiliatehub.config import settings
from affiliatehub.models import (
    Click,
    Commission,
    Coupon,
    CustomerHistory,
    Partner,
    PartnerStatus,
    SystemEvent,
)
from affiliatehub.utils.signature import sign_payload
from tests.conftest import make_coupon, make_partner


async def _seed(factory, *objects):
    async with factory() as session:
        session.add_all(objects)
        await session.commit()


async def _seed_partner(factory, **kwargs) -> int:
    partner = make_partner(**kwargs)
    await _seed(factory, partner)
    return partner.id


def _conversion(**kwargs):
    payload = {
        "orderId": "ord-1001",
        "customerEmail": "jane@example.com",
        "orderValue": 200,
        "referralCode": "ACME10",
    }
    payload.update(kwargs)
    return payload


# ── Conversion webhook ───────────────────────────────────


@pytest.mark.asyncio
async def test_conversion_approved(client, file_session_factory):
    partner_id = await _seed_partner(file_session_factory, commission_rate=Decimal("5"))

    resp = await client.post("/api/webhook/conversion", json=_conversion())

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["shouldPay"] is True
    assert data["reason"] is None
    assert data["duplicate"] is False
    assert Decimal(data["commission"]["commissionAmount"]) == Decimal("10.00")
    assert data["commission"]["status"] == "approved"
    assert data["commission"]["isNewCustomer"] is True

    async with file_session_factory() as session:
        partner = await session.get(Partner, partner_id)
        assert partner.conversion_count == 1
        assert partner.total_revenue == Decimal("200.00")
        assert partner.total_commissions == Decimal("10.00")

        history = (await session.execute(select(CustomerHistory))).scalar_one()
        assert history.customer_email == "jane@example.com"


@pytest.mark.asyncio
async def test_conversion_blocked_returning_customer(client, file_session_factory):
    await _seed_partner(file_session_factory, commission_rate=Decimal("5"), new_customers_only=True)

    await client.post("/api/webhook/conversion", json=_conversion())
    resp = await client.post("/api/webhook/conversion", json=_conversion(orderId="ord-1002"))

    assert resp.status_code == 200
    data = resp.json()
    assert data["shouldPay"] is False
    assert "new customers" in data["reason"]
    assert data["commission"]["status"] == "blocked"
    assert data["commission"]["statusReason"] == data["reason"]
    assert data["commission"]["isNewCustomer"] is False
    assert Decimal(data["commission"]["commissionAmount"]) == Decimal("10.00")


@pytest.mark.asyncio
async def test_snake_case_payload_accepted(client, file_session_factory):
    await _seed_partner(file_session_factory)

    resp = await client.post(
        "/api/webhook/conversion",
        json={
            "order_id": "ord-1",
            "customer_email": "sam@example.com",
            "order_value": "49.99",
            "referral_code": "ACME10",
        },
    )

    assert resp.status_code == 200
    assert Decimal(resp.json()["commission"]["commissionAmount"]) == Decimal("5.00")


@pytest.mark.asyncio
async def test_unknown_referral_code(client, file_session_factory):
    resp = await client.post("/api/webhook/conversion", json=_conversion(referralCode="NOPE"))
    assert resp.status_code == 404
    assert resp.json() == {"error": "Partner not found"}


@pytest.mark.asyncio
async def test_inactive_partner_rejected_without_records(client, file_session_factory):
    await _seed_partner(file_session_factory, status=PartnerStatus.PENDING)

    resp = await client.post("/api/webhook/conversion", json=_conversion())

    assert resp.status_code == 400
    assert resp.json() == {"error": "Partner is not active"}
    async with file_session_factory() as session:
        assert (await session.execute(select(Commission))).scalars().all() == []
        assert (await session.execute(select(CustomerHistory))).scalars().all() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"customerEmail": "a@example.com", "orderValue": 10, "referralCode": "ACME10"},
        _conversion(orderValue=0),
        _conversion(orderValue=-5),
        _conversion(customerEmail="not-an-email"),
    ],
)
async def test_invalid_payload_rejected(client, file_session_factory, payload):
    resp = await client.post("/api/webhook/conversion", json=payload)
    assert resp.status_code == 422
    assert resp.json()["error"] == "Invalid request data"
    assert resp.json()["details"]


@pytest.mark.asyncio
async def test_duplicate_order_is_idempotent(client, file_session_factory):
    partner_id = await _seed_partner(file_session_factory)

    first = await client.post("/api/webhook/conversion", json=_conversion())
    second = await client.post("/api/webhook/conversion", json=_conversion())

    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["commission"]["id"] == first.json()["commission"]["id"]

    async with file_session_factory() as session:
        partner = await session.get(Partner, partner_id)
        assert partner.conversion_count == 1
        history = (await session.execute(select(CustomerHistory))).scalar_one()
        assert history.total_orders == 1


@pytest.mark.asyncio
async def test_coupon_applied_and_counted(client, file_session_factory):
    partner_id = await _seed_partner(file_session_factory)
    coupon = make_coupon(partner_id, code="SAVE20")
    await _seed(file_session_factory, coupon)

    resp = await client.post("/api/webhook/conversion", json=_conversion(couponCode="SAVE20"))

    commission = resp.json()["commission"]
    assert commission["couponCode"] == "SAVE20"
    assert Decimal(commission["couponDiscount"]) == Decimal("20.00")
    assert resp.json()["shouldPay"] is True  # partner does not require coupon usage

    async with file_session_factory() as session:
        stored = await session.get(Coupon, coupon.id)
        assert stored.usage_count == 1


@pytest.mark.asyncio
async def test_foreign_coupon_gives_no_discount(client, file_session_factory):
    await _seed_partner(file_session_factory)
    other_id = await _seed_partner(
        file_session_factory, email="o@partner.example.com", referral_code="OTHER"
    )
    await _seed(file_session_factory, make_coupon(other_id, code="OTHER20"))

    resp = await client.post("/api/webhook/conversion", json=_conversion(couponCode="OTHER20"))

    assert resp.status_code == 200
    commission = resp.json()["commission"]
    assert commission["couponCode"] is None
    assert Decimal(commission["couponDiscount"]) == Decimal("0.00")


@pytest.mark.asyncio
async def test_expired_coupon_gives_no_discount(client, file_session_factory):
    partner_id = await _seed_partner(file_session_factory)
    await _seed(
        file_session_factory,
        make_coupon(partner_id, expires_at=datetime.now(timezone.utc) - timedelta(days=1)),
    )

    resp = await client.post("/api/webhook/conversion", json=_conversion(couponCode="SAVE20"))

    assert Decimal(resp.json()["commission"]["couponDiscount"]) == Decimal("0.00")


@pytest.mark.asyncio
async def test_concurrent_duplicate_returns_stored_commission(client, file_session_factory, monkeypatch):
    """A second delivery that misses the duplicate check hits the unique constraint."""
    partner_id = await _seed_partner(file_session_factory)
    first = await client.post("/api/webhook/conversion", json=_conversion())

    real_lookup = webhooks.get_latest_commission_for_order
    calls = {"n": 0}

    async def lookup_before_first_commit(db, order_id, partner_id=None, for_update=False):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return await real_lookup(db, order_id, partner_id=partner_id, for_update=for_update)

    monkeypatch.setattr(webhooks, "get_latest_commission_for_order", lookup_before_first_commit)

    second = await client.post("/api/webhook/conversion", json=_conversion())

    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert second.json()["commission"]["id"] == first.json()["commission"]["id"]

    async with file_session_factory() as session:
        assert len((await session.execute(select(Commission))).scalars().all()) == 1
        history = (await session.execute(select(CustomerHistory))).scalar_one()
        assert history.total_orders == 1
        partner = await session.get(Partner, partner_id)
        assert partner.conversion_count == 1


@pytest.mark.asyncio
async def test_storage_error_leaves_no_partial_writes(client, file_session_factory, monkeypatch):
    partner_id = await _seed_partner(file_session_factory)
    coupon = make_coupon(partner_id, code="SAVE20")
    await _seed(file_session_factory, coupon)

    async def failing_stats(*args, **kwargs):
        raise OperationalError("UPDATE partners", {}, Exception("database is locked"))

    monkeypatch.setattr(webhooks, "record_conversion_stats", failing_stats)

    resp = await client.post("/api/webhook/conversion", json=_conversion(couponCode="SAVE20"))

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to process conversion"}

    async with file_session_factory() as session:
        assert (await session.execute(select(Commission))).scalars().all() == []
        assert (await session.execute(select(CustomerHistory))).scalars().all() == []
        assert (await session.execute(select(SystemEvent))).scalars().all() == []
        stored = await session.get(Coupon, coupon.id)
        assert stored.usage_count == 0


# ── Coupon usage webhook ─────────────────────────────────


@pytest.mark.asyncio
async def test_coupon_usage_flow(client, file_session_factory):
    partner_id = await _seed_partner(file_session_factory, require_coupon_usage=True)
    await _seed(file_session_factory, make_coupon(partner_id, code="SAVE20"))

    resp = await client.post("/api/webhook/conversion", json=_conversion(couponCode="SAVE20"))
    assert resp.json()["shouldPay"] is False
    assert "Coupon value not fully used" in resp.json()["reason"]

    resp = await client.post("/api/webhook/coupon-usage", json={"orderId": "ord-1001", "amount": "19.99"})
    assert resp.status_code == 200
    assert resp.json()["commission"]["status"] == "blocked"

    resp = await client.post("/api/webhook/coupon-usage", json={"orderId": "ord-1001", "amount": "0.01"})
    assert resp.json()["commission"]["status"] == "approved"
    assert Decimal(resp.json()["commission"]["couponValueUsed"]) == Decimal("20.00")


@pytest.mark.asyncio
async def test_coupon_usage_unknown_order(client, file_session_factory):
    resp = await client.post("/api/webhook/coupon-usage", json={"orderId": "missing", "amount": 5})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Commission not found"}


# ── Signatures ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_signature_required_when_secret_set(client, file_session_factory, monkeypatch):
    await _seed_partner(file_session_factory)
    monkeypatch.setattr(settings, "webhook_secret", "s3cret")
    body = json.dumps(_conversion()).encode()

    unsigned = await client.post(
        "/api/webhook/conversion", content=body, headers={"Content-Type": "application/json"}
    )
    assert unsigned.status_code == 401
    assert unsigned.json() == {"error": "Invalid signature"}

    signed = await client.post(
        "/api/webhook/conversion",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Webhook-Signature": sign_payload(body, "s3cret"),
        },
    )
    assert signed.status_code == 200


# ── Tracking ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_track_referral_records_click(client, file_session_factory):
    partner_id = await _seed_partner(file_session_factory)

    resp = await client.get(
        "/api/track/ACME10",
        headers={"User-Agent": "pytest", "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )

    assert resp.status_code == 302
    assert resp.headers["location"] == settings.referral_redirect_url

    async with file_session_factory() as session:
        click = (await session.execute(select(Click))).scalar_one()
        assert click.ip_address == "203.0.113.7"
        assert click.user_agent == "pytest"
        partner = await session.get(Partner, partner_id)
        assert partner.click_count == 1


@pytest.mark.asyncio
async def test_track_unknown_code(client, file_session_factory):
    resp = await client.get("/api/track/NOPE")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Invalid referral code"}
