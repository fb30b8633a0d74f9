#!/usr/bin/env python3
"""
Event Schemas - Pydantic Models for Structured Logging

Type-safe payloads for the machine's structured log events.

Usage:
    from tree_editor.event_schemas import OperationSettled
    from tree_editor.logger_factory import log_event

    ev = OperationSettled(
        operation="delete_asset",
        invocation_id=3,
        succeeded=True,
        duration_ms=412.0,
    )
    log_event(logger, "fsm_operation_settled", **ev.model_dump())
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class FsmTransition(BaseModel):
    """A processed event that moved the machine or changed its context."""
    trigger: str
    from_state: str
    to_state: str
    asset_count: int
    selected_fund_id: Optional[str] = None
    selected_asset_id: Optional[str] = None
    transition_count: int


class EventIgnored(BaseModel):
    """
    An event without effect.

    Fields:
        reason: "no_transition" (undefined or guard failed) or "stale_result"
    """
    trigger: str
    state: str
    reason: str
    invocation_id: Optional[int] = None


class OperationInvoked(BaseModel):
    operation: str
    invocation_id: int
    input: Optional[Dict[str, Any]] = None


class OperationSettled(BaseModel):
    operation: str
    invocation_id: int
    succeeded: bool
    duration_ms: float


class OperationFailed(BaseModel):
    operation: str
    invocation_id: int
    error_type: str
    error: str


class ImportAbandoned(BaseModel):
    """The import dialog was closed while an import was in flight."""
    invocation_id: int
