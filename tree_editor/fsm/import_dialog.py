"""
Import Dialog Sub-Machine

Nested inside TreeState.IMPORT_DIALOG_OPEN:

    IDLE --IMPORT_DATA--> IMPORTING --done--> DONE (final)
                          IMPORTING --failed--> IDLE  (recovery enabled)
                          IMPORTING --failed--> IMPORTING, nothing pending
                                                (recovery disabled)

DONE is final: the root machine leaves IMPORT_DIALOG_OPEN as soon as
the dialog reaches it. CLOSE_IMPORT_DIALOG is handled by the root
(composite) state, not here, so it works from every sub-state.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .actions import FAILURE_ACTIONS, SUCCESS_ACTIONS
from .effects import Effect, Invocation, InvokeOperation, OperationKind
from .fsm_events import Event, EventType
from .phases import DialogState
from .state import MachineContext

INITIAL_DIALOG_STATE = DialogState.IDLE


@dataclass(frozen=True)
class DialogStep:
    """Outcome of a handled dialog event."""
    dialog: DialogState
    context: MachineContext
    pending: Optional[Invocation] = None
    effects: Tuple[Effect, ...] = ()


def dialog_can(dialog: DialogState, event_type: EventType) -> bool:
    """True if the sub-machine defines a user transition for event_type."""
    return dialog == DialogState.IDLE and event_type == EventType.IMPORT_DATA


def dialog_transition(
    dialog: DialogState,
    event: Event,
    ctx: MachineContext,
    *,
    pending: Optional[Invocation],
    next_invocation_id: int,
    recover_on_failure: bool = True,
) -> Optional[DialogStep]:
    """
    Dialog transition function.

    Args:
        dialog: Current sub-state
        event: Event to process (settlement events must already be
            matched against the pending invocation by the caller)
        ctx: Current machine context
        pending: Import invocation in flight, if any
        next_invocation_id: Id to use when starting an import
        recover_on_failure: Return to IDLE when the import fails instead
            of staying in IMPORTING with no pending invocation

    Returns:
        DialogStep, or None if the event is not handled in this sub-state
    """
    if dialog == DialogState.IDLE and event.type == EventType.IMPORT_DATA:
        invocation = Invocation(next_invocation_id, OperationKind.IMPORT_ASSETS)
        return DialogStep(
            DialogState.IMPORTING,
            ctx,
            pending=invocation,
            effects=(InvokeOperation(invocation),),
        )

    if dialog == DialogState.IMPORTING and pending is not None:
        if event.type == EventType.OPERATION_DONE:
            action = SUCCESS_ACTIONS[OperationKind.IMPORT_ASSETS]
            return DialogStep(DialogState.DONE, action(ctx, pending, event.output))

        if event.type == EventType.OPERATION_FAILED:
            action = FAILURE_ACTIONS[OperationKind.IMPORT_ASSETS]
            if recover_on_failure:
                return DialogStep(DialogState.IDLE, action(ctx, pending))
            # Settled, but the dialog stays in IMPORTING until closed
            return DialogStep(DialogState.IMPORTING, action(ctx, pending), pending=None)

    return None
