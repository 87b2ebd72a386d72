"""Exceptions for execution context scoping.

All of these signal programmer errors: code asked for ambient state that
its call site requires but that the pipeline never established, or tried
to rebind a field of a context that is already populated.
"""


class ExecutionContextError(Exception):
    """Base class for execution context errors."""

    pass


class ScopeNotOpenError(ExecutionContextError):
    """Raised when a call site requires an open Context Scope and none is active.

    This must never be treated as "no tenant": an untenanted scope is a
    valid state with its own authorization rules, while a missing scope means
    the unit of work was started outside the request or worker pipeline.
    """

    def __init__(self, accessor: str = "context") -> None:
        super().__init__(
            f"No execution context scope is open; cannot read current {accessor}"
        )
        self.accessor = accessor


class TenantNotBoundError(ExecutionContextError):
    """Raised when a call site requires a tenant but the open scope is untenanted."""

    def __init__(self) -> None:
        super().__init__("The open execution context scope has no tenant bound")


class PrincipalNotBoundError(ExecutionContextError):
    """Raised when a call site requires a principal but none is bound."""

    def __init__(self) -> None:
        super().__init__("The open execution context scope has no principal bound")


class ContextFieldAlreadySetError(ExecutionContextError):
    """Raised when binding a context field that already holds a value.

    Context fields are write-once. Changing the visible tenant or principal
    requires opening a nested scope with a new context.
    """

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Execution context field '{field_name}' is already bound")
        self.field_name = field_name
