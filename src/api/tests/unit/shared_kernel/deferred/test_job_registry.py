"""Unit tests for DeferredJobRegistry."""

import pytest

from shared_kernel.deferred import DeferredJobRegistry, UnknownJobError


async def _noop(payload):
    return None


async def _other(payload):
    return None


class TestDeferredJobRegistry:
    """Tests for resolving job handlers."""

    def test_resolves_registered_handler(self):
        registry = DeferredJobRegistry({"audit.relay": _noop})

        assert registry.resolve("audit.relay") is _noop

    def test_unknown_job_raises(self):
        registry = DeferredJobRegistry({"audit.relay": _noop})

        with pytest.raises(UnknownJobError) as exc_info:
            registry.resolve("boards.reindex")

        assert exc_info.value.job_name == "boards.reindex"

    @pytest.mark.parametrize("job_name", ["", "  "])
    def test_rejects_empty_job_name(self, job_name):
        with pytest.raises(ValueError):
            DeferredJobRegistry({job_name: _noop})

    def test_is_not_affected_by_later_changes_to_source_mapping(self):
        handlers = {"audit.relay": _noop}
        registry = DeferredJobRegistry(handlers)

        handlers["boards.reindex"] = _other

        assert registry.job_names() == frozenset({"audit.relay"})

    def test_merged_with_returns_new_registry(self):
        registry = DeferredJobRegistry({"audit.relay": _noop})

        merged = registry.merged_with({"boards.reindex": _other})

        assert merged.job_names() == frozenset({"audit.relay", "boards.reindex"})
        assert registry.job_names() == frozenset({"audit.relay"})

    def test_merged_with_rejects_duplicates(self):
        registry = DeferredJobRegistry({"audit.relay": _noop})

        with pytest.raises(ValueError, match="audit.relay"):
            registry.merged_with({"audit.relay": _other})
