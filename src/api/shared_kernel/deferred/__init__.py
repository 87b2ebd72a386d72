"""Deferred work envelopes: capture and restore of execution context.

A request that schedules work calls ``capture`` inside its scope; the worker
that later consumes the envelope calls ``ContextRestorer.restore`` and runs
the job inside a scope bound to the result.
"""

from shared_kernel.deferred.capture import capture
from shared_kernel.deferred.exceptions import (
    DeferredWorkError,
    EnvelopeFormatError,
    UnknownJobError,
    UnresolvablePrincipalError,
    UnresolvableTenantError,
)
from shared_kernel.deferred.ports import (
    DeferredJobHandler,
    DeferredWorkQueue,
    PrincipalLookup,
    TenantLookup,
)
from shared_kernel.deferred.registry import DeferredJobRegistry
from shared_kernel.deferred.restore import ContextRestorer
from shared_kernel.deferred.serialization import (
    envelope_from_dict,
    envelope_from_json,
    envelope_to_dict,
    envelope_to_json,
)
from shared_kernel.deferred.value_objects import DeferredWorkEnvelope, PendingDelivery

__all__ = [
    "ContextRestorer",
    "DeferredJobHandler",
    "DeferredJobRegistry",
    "DeferredWorkEnvelope",
    "DeferredWorkError",
    "DeferredWorkQueue",
    "EnvelopeFormatError",
    "PendingDelivery",
    "PrincipalLookup",
    "TenantLookup",
    "UnknownJobError",
    "UnresolvablePrincipalError",
    "UnresolvableTenantError",
    "capture",
    "envelope_from_dict",
    "envelope_from_json",
    "envelope_to_dict",
    "envelope_to_json",
]
