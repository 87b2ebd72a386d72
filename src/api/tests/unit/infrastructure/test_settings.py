"""Unit tests for infrastructure settings."""

import pytest
from pydantic import ValidationError

from infrastructure.settings import (
    AuditRelayKind,
    AuditSettings,
    DatabaseSettings,
    DeferredWorkerSettings,
    Settings,
    StorageBackend,
    TenancySettings,
)


class TestDatabaseSettingsPoolConfiguration:
    """Tests for connection pool configuration."""

    def test_default_pool_settings(self):
        """Should have sensible pool defaults."""
        settings = DatabaseSettings(_env_file=None)
        assert settings.pool_min_connections >= 1
        assert settings.pool_max_connections >= settings.pool_min_connections

    def test_pool_max_must_be_greater_than_or_equal_to_min(self):
        """Should validate max >= min."""
        with pytest.raises(ValidationError) as exc_info:
            DatabaseSettings(pool_min_connections=10, pool_max_connections=5)

        assert "pool_max_connections" in str(exc_info.value)

    def test_pool_min_must_be_positive(self):
        """Pool min connections must be >= 1."""
        with pytest.raises(ValidationError):
            DatabaseSettings(pool_min_connections=0)

    def test_connection_string_hides_password(self):
        settings = DatabaseSettings(username="u", password="secret", host="db")

        assert "secret" not in settings.connection_string
        assert settings.connection_string == "postgresql://u@db:5432/tenantscope"


class TestTenancySettings:
    """Tests for tenant path configuration."""

    def test_defaults(self):
        settings = TenancySettings(_env_file=None)

        assert settings.min_digits == 7
        assert settings.max_digits is None
        assert settings.principal_header == "X-Principal-ID"
        assert settings.seed_tenants == {}

    @pytest.mark.parametrize(
        "min_digits,max_digits",
        [(0, None), (-1, None), (7, 6), (3, 1)],
    )
    def test_rejects_ambiguous_path_config(self, min_digits, max_digits):
        with pytest.raises(ValidationError):
            TenancySettings(min_digits=min_digits, max_digits=max_digits)

    @pytest.mark.parametrize("min_digits,max_digits", [(1, None), (7, 7), (7, 12)])
    def test_accepts_valid_path_config(self, min_digits, max_digits):
        settings = TenancySettings(min_digits=min_digits, max_digits=max_digits)

        assert settings.min_digits == min_digits

    def test_seed_tenants_from_environment(self, monkeypatch):
        monkeypatch.setenv(
            "TENANTSCOPE_TENANCY_SEED_TENANTS",
            '{"1234567": "Acme", "7654321": "Globex"}',
        )

        settings = TenancySettings(_env_file=None)

        assert settings.seed_tenants == {1234567: "Acme", 7654321: "Globex"}

    @pytest.mark.parametrize("seed", [{0: "Zero"}, {-5: "Negative"}, {1234567: "  "}])
    def test_rejects_invalid_seed_tenants(self, seed):
        with pytest.raises(ValidationError):
            TenancySettings(seed_tenants=seed)

    def test_rejects_seed_tenant_longer_than_max_digits(self):
        with pytest.raises(ValidationError) as exc_info:
            TenancySettings(max_digits=7, seed_tenants={12345678: "TooLong"})

        assert "12345678" in str(exc_info.value)

    def test_accepts_seed_tenants_within_max_digits(self):
        settings = TenancySettings(
            max_digits=8, seed_tenants={1234567: "Acme", 12345678: "Initech"}
        )

        assert set(settings.seed_tenants) == {1234567, 12345678}


class TestDeferredWorkerSettings:
    """Tests for worker configuration."""

    def test_defaults(self):
        settings = DeferredWorkerSettings(_env_file=None)

        assert settings.enabled is True
        assert settings.max_retries == 5

    @pytest.mark.parametrize(
        "field,value",
        [("poll_interval_seconds", 0), ("batch_size", 0), ("max_retries", 0)],
    )
    def test_rejects_non_positive_values(self, field, value):
        with pytest.raises(ValidationError):
            DeferredWorkerSettings(**{field: value})


class TestSettings:
    """Tests for the top-level settings."""

    def test_storage_backend_from_environment(self, monkeypatch):
        monkeypatch.setenv("TENANTSCOPE_STORAGE_BACKEND", "database")

        assert Settings(_env_file=None).storage_backend is StorageBackend.DATABASE

    def test_log_level_is_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_rejects_unknown_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="verbose")

    def test_audit_relay_kind(self):
        assert AuditSettings(relay="memory").relay is AuditRelayKind.MEMORY
