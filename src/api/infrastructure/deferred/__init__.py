"""Deferred work queue adapters and worker."""

from infrastructure.deferred.in_memory import InMemoryDeferredWorkQueue
from infrastructure.deferred.observability import (
    DefaultDeferredWorkerProbe,
    DeferredWorkerProbe,
)
from infrastructure.deferred.repository import SqlDeferredWorkQueue
from infrastructure.deferred.worker import DeferredWorkWorker

__all__ = [
    "DefaultDeferredWorkerProbe",
    "DeferredWorkWorker",
    "DeferredWorkerProbe",
    "InMemoryDeferredWorkQueue",
    "SqlDeferredWorkQueue",
]
