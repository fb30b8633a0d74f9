#!/usr/bin/env python3
"""
FSM Exceptions

Custom exceptions for transition control and operation failures.
"""


class OperationInputError(Exception):
    """
    Raised when the input of an operation cannot be built on entry to
    an invoking state (the required selection is unset).

    The transition function routes it through the operation's failure
    path instead of propagating it.

    Attributes:
        operation: Operation kind value (e.g. "delete_asset")
        reason: Human-readable reason
    """

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation}: {reason}")


class BackendError(Exception):
    """Raised by a backend when an operation did not produce output."""
    pass


class MachineNotRunningError(RuntimeError):
    """Raised when events are sent to a machine that is not started or already stopped."""
    pass
