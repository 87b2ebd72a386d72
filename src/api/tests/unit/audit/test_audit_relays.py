"""Unit tests for audit relays and the relay job."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from audit.application.jobs import AUDIT_RELAY_JOB, AuditRelayJob, audit_job_handlers
from audit.domain.value_objects import AuditEvent
from audit.infrastructure.relays import (
    InMemoryAuditRelay,
    LoggingAuditRelay,
    NullAuditRelay,
    build_audit_relay,
)
from audit.ports.relays import AuditRelay
from infrastructure.settings import AuditRelayKind
from shared_kernel.execution_context import (
    ExecutionContext,
    TenantNotBoundError,
    awith_context,
)

OCCURRED_AT = datetime(2024, 5, 1, 12, 30, tzinfo=UTC)


@pytest.fixture
def event() -> AuditEvent:
    return AuditEvent(
        action="board.archived",
        resource="board:9",
        tenant_external_id=1234567,
        tenant_name="Acme",
        principal_id="alice",
        occurred_at=OCCURRED_AT,
        detail={"reason": "cleanup"},
    )


class TestBuildAuditRelay:
    """Tests for choosing a relay from configuration."""

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (AuditRelayKind.LOG, LoggingAuditRelay),
            (AuditRelayKind.MEMORY, InMemoryAuditRelay),
            (AuditRelayKind.NULL, NullAuditRelay),
        ],
    )
    def test_builds_each_kind(self, kind, expected):
        relay = build_audit_relay(kind)

        assert isinstance(relay, expected)
        assert isinstance(relay, AuditRelay)

    def test_unknown_kind_raises(self):
        with pytest.raises(ValueError):
            build_audit_relay("carrier-pigeon")


class TestRelays:
    """Tests for the relay implementations."""

    @pytest.mark.asyncio
    async def test_logging_relay_writes_structured_record(self, event):
        logger = MagicMock()

        await LoggingAuditRelay(logger=logger).relay(event)

        logger.info.assert_called_once()
        args, kwargs = logger.info.call_args
        assert args == ("audit_event",)
        assert kwargs["tenant_external_id"] == 1234567
        assert kwargs["principal_id"] == "alice"
        assert kwargs["occurred_at"] == "2024-05-01T12:30:00+00:00"

    @pytest.mark.asyncio
    async def test_in_memory_relay_keeps_events(self, event):
        relay = InMemoryAuditRelay()

        await relay.relay(event)

        assert relay.events == [event]

    @pytest.mark.asyncio
    async def test_null_relay_discards(self, event):
        assert await NullAuditRelay().relay(event) is None


class TestAuditRelayJob:
    """Tests for the deferred job handler."""

    @pytest.fixture
    def payload(self) -> dict:
        return {
            "action": "board.archived",
            "resource": "board:9",
            "detail": {"reason": "cleanup"},
            "occurred_at": OCCURRED_AT.isoformat(),
        }

    def test_registered_under_job_name(self):
        handlers = audit_job_handlers(InMemoryAuditRelay())

        assert set(handlers) == {AUDIT_RELAY_JOB}

    @pytest.mark.asyncio
    async def test_builds_event_from_scope(self, context_a, payload, event):
        relay = InMemoryAuditRelay()

        await awith_context(context_a, AuditRelayJob(relay), payload)

        assert relay.events == [event]

    @pytest.mark.asyncio
    async def test_tenant_comes_from_scope_not_payload(self, context_b, payload):
        relay = InMemoryAuditRelay()
        payload["tenant_external_id"] = 1234567

        await awith_context(context_b, AuditRelayJob(relay), payload)

        [recorded] = relay.events
        assert recorded.tenant_external_id == 7654321
        assert recorded.principal_id == "bob"

    @pytest.mark.asyncio
    async def test_requires_tenant(self, payload):
        relay = InMemoryAuditRelay()

        with pytest.raises(TenantNotBoundError):
            await awith_context(ExecutionContext.empty(), AuditRelayJob(relay), payload)

        assert relay.events == []

    @pytest.mark.asyncio
    async def test_principal_is_optional(self, tenant_a, payload):
        relay = InMemoryAuditRelay()
        context = ExecutionContext.empty().with_tenant(tenant_a)

        await awith_context(context, AuditRelayJob(relay), payload)

        assert relay.events[0].principal_id is None

    @pytest.mark.asyncio
    async def test_missing_field_raises(self, context_a, payload):
        del payload["action"]

        with pytest.raises(KeyError):
            await awith_context(context_a, AuditRelayJob(InMemoryAuditRelay()), payload)
