#!/usr/bin/env python3
"""
FSM Event System

Events that trigger FSM transitions. Inbound events come from the
presentation collaborator; OPERATION_DONE / OPERATION_FAILED are
internal and are produced by the runtime when an operation settles.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class EventType(str, Enum):
    """
    FSM Events - Triggers for state transitions

    Values equal names so collaborators may pass plain strings.
    """
    # Selection events (accepted in every state)
    SELECT_FUND = "SELECT_FUND"
    SELECT_ASSET = "SELECT_ASSET"
    UNSELECT_ASSET = "UNSELECT_ASSET"

    # Operation events (Idle only, guarded)
    DELETE_ASSET = "DELETE_ASSET"
    ADD_ASSET = "ADD_ASSET"
    REPLACE_ASSET = "REPLACE_ASSET"

    # Import dialog
    OPEN_IMPORT_DIALOG = "OPEN_IMPORT_DIALOG"
    CLOSE_IMPORT_DIALOG = "CLOSE_IMPORT_DIALOG"
    IMPORT_DATA = "IMPORT_DATA"

    # Internal: operation settlement
    OPERATION_DONE = "OPERATION_DONE"
    OPERATION_FAILED = "OPERATION_FAILED"


INTERNAL_EVENTS = {EventType.OPERATION_DONE, EventType.OPERATION_FAILED}

# Built through select_fund() / select_asset(), never through of()
PAYLOAD_EVENTS = {EventType.SELECT_FUND, EventType.SELECT_ASSET}


@dataclass(frozen=True)
class Event:
    """
    Immutable event passed to the transition function.

    Only the fields relevant to the event type are set:
    fund for SELECT_FUND, asset_id for SELECT_ASSET, and
    invocation_id/output/error for the internal settlement events.
    """
    type: EventType
    fund: Optional[str] = None
    asset_id: Optional[str] = None
    invocation_id: Optional[int] = None
    output: Any = None
    error: Optional[BaseException] = None
    timestamp: float = field(default_factory=time.time, compare=False)

    # ----- constructors -----

    @classmethod
    def select_fund(cls, fund: str) -> "Event":
        return cls(EventType.SELECT_FUND, fund=fund)

    @classmethod
    def select_asset(cls, asset_id: str) -> "Event":
        return cls(EventType.SELECT_ASSET, asset_id=asset_id)

    @classmethod
    def of(cls, event_type) -> "Event":
        """
        Build a payload-less event from an EventType or its name.

        Raises:
            ValueError: Unknown name, or an event type that carries a payload
        """
        event_type = EventType(event_type)
        if event_type in PAYLOAD_EVENTS:
            raise ValueError(f"{event_type.value} needs a payload; use Event.{event_type.value.lower()}()")
        return cls(event_type)

    @classmethod
    def done(cls, invocation_id: int, output: Any = None) -> "Event":
        return cls(EventType.OPERATION_DONE, invocation_id=invocation_id, output=output)

    @classmethod
    def failed(cls, invocation_id: int, error: Optional[BaseException] = None) -> "Event":
        return cls(EventType.OPERATION_FAILED, invocation_id=invocation_id, error=error)

    def __str__(self):
        parts = [self.type.value]
        if self.fund is not None:
            parts.append(f"fund={self.fund}")
        if self.asset_id is not None:
            parts.append(f"asset_id={self.asset_id}")
        if self.invocation_id is not None:
            parts.append(f"invocation={self.invocation_id}")
        return f"Event({', '.join(parts)})"
