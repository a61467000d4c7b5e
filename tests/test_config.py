"""
Tests for settings and webhook signature helpers.
"""

from affiliatehub.config import Settings
from affiliatehub.utils.signature import sign_payload, verify_webhook_signature


class TestSettings:
    def test_postgres_url_rewritten_for_asyncpg(self):
        settings = Settings(database_url="postgres://u:p@db:5432/aff")
        assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/aff"

    def test_postgresql_url_rewritten_for_asyncpg(self):
        settings = Settings(database_url="postgresql://u:p@db:5432/aff")
        assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/aff"

    def test_sync_url(self):
        settings = Settings(database_url="postgresql+asyncpg://u:p@db:5432/aff")
        assert settings.database_url_sync == "postgresql+psycopg2://u:p@db:5432/aff"

    def test_commission_period_default(self):
        assert Settings().default_commission_period_months == 12


class TestSignature:
    def test_valid_signature(self):
        body = b'{"orderId": "ord-1"}'
        assert verify_webhook_signature(body, sign_payload(body, "secret"), "secret")

    def test_uppercase_hex_accepted(self):
        body = b"{}"
        assert verify_webhook_signature(body, sign_payload(body, "secret").upper(), "secret")

    def test_tampered_body_rejected(self):
        signature = sign_payload(b'{"orderValue": 10}', "secret")
        assert not verify_webhook_signature(b'{"orderValue": 1000}', signature, "secret")

    def test_missing_signature_rejected(self):
        assert not verify_webhook_signature(b"{}", "", "secret")
