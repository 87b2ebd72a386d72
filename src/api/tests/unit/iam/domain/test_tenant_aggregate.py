"""Unit tests for Tenant aggregate."""

import pytest

from iam.domain.aggregates import Tenant
from iam.domain.aggregates.tenant import generate_external_id
from iam.domain.exceptions import TenantAlreadyArchivedError
from iam.domain.value_objects import TenantId
from shared_kernel.execution_context import TenantExternalId, TenantIdentity


class TestTenantCreation:
    """Tests for Tenant.create()."""

    def test_create_with_external_id(self):
        """Should create a live tenant with the given external id."""
        tenant = Tenant.create(name="Acme", external_id=TenantExternalId(value=1234567))

        assert tenant.name == "Acme"
        assert tenant.external_id == TenantExternalId(value=1234567)
        assert isinstance(tenant.id, TenantId)
        assert not tenant.is_archived

    def test_create_generates_seven_digit_external_id(self):
        tenant = Tenant.create(name="Acme")

        assert len(str(tenant.external_id)) == 7

    def test_name_is_stripped(self):
        assert Tenant.create(name="  Acme  ").name == "Acme"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_rejects_empty_name(self, name):
        with pytest.raises(ValueError):
            Tenant.create(name=name)

    def test_each_tenant_gets_unique_id(self):
        assert Tenant.create(name="a").id != Tenant.create(name="b").id


class TestGenerateExternalId:
    """Tests for external id generation."""

    @pytest.mark.parametrize("digits", [1, 3, 7, 10])
    def test_has_exact_digit_count(self, digits):
        for _ in range(50):
            assert len(str(generate_external_id(digits))) == digits


class TestTenantArchive:
    """Tests for archiving."""

    def test_archive_sets_timestamp(self):
        tenant = Tenant.create(name="Acme")

        tenant.archive()

        assert tenant.is_archived
        assert tenant.archived_at is not None

    def test_archive_twice_raises(self):
        tenant = Tenant.create(name="Acme")
        tenant.archive()

        with pytest.raises(TenantAlreadyArchivedError):
            tenant.archive()


class TestToIdentity:
    """Tests for the execution context view of a tenant."""

    def test_identity_carries_ids_and_name(self):
        tenant = Tenant.create(name="Acme", external_id=TenantExternalId(value=1234567))

        identity = tenant.to_identity()

        assert identity == TenantIdentity(
            internal_id=tenant.id.value,
            external_id=TenantExternalId(value=1234567),
            name="Acme",
        )
