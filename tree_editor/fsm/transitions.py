#!/usr/bin/env python3
"""
FSM Transition Table

(CurrentState, Event) → (NextState, Guard)

The single source of truth for root transitions, plus the pure
transition function:

    transition(state, event, context) -> TransitionResult(state, context, effects)

The function performs no I/O. Starting and abandoning operations is
expressed as effects which the runtime executes.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from tree_editor.logger_factory import log_event

from . import guards
from .actions import FAILURE_ACTIONS, SUCCESS_ACTIONS, build_input
from .effects import AbandonOperation, Effect, Invocation, InvokeOperation, OperationKind
from .exceptions import OperationInputError
from .fsm_events import INTERNAL_EVENTS, Event, EventType
from .import_dialog import INITIAL_DIALOG_STATE, dialog_can, dialog_transition
from .phases import FINAL_DIALOG_STATES, TreeState
from .state import MachineContext, MachineState

logger = logging.getLogger(__name__)

# Type aliases
Guard = Callable[[MachineContext], bool]
SelectionAction = Callable[[MachineContext, Event], MachineContext]
TransitionKey = Tuple[TreeState, EventType]


@dataclass(frozen=True)
class Transition:
    target: TreeState
    guard: Guard = guards.always


@dataclass(frozen=True)
class TransitionResult:
    """
    Outcome of processing one event.

    handled is False when the event was ignored (no transition defined,
    guard failed, or a settlement arrived for an invocation the machine
    no longer waits for). Ignored events leave state and context as they were.
    """
    state: MachineState
    context: MachineContext
    effects: Tuple[Effect, ...] = ()
    handled: bool = True
    stale: bool = False


# Operation invoked on entry to each invoking state
ENTRY_OPERATIONS: Dict[TreeState, OperationKind] = {
    TreeState.LOADING_INITIAL: OperationKind.FETCH_ASSETS,
    TreeState.DELETING_ASSET: OperationKind.DELETE_ASSET,
    TreeState.ADDING_ASSET: OperationKind.ADD_ASSET,
    TreeState.REPLACING_ASSET: OperationKind.REPLACE_ASSET,
}


def _select_fund(ctx: MachineContext, event: Event) -> MachineContext:
    return ctx.with_selection(ctx.selection.with_fund(event.fund))


def _select_asset(ctx: MachineContext, event: Event) -> MachineContext:
    return ctx.with_selection(ctx.selection.with_asset(event.asset_id))


def _unselect_asset(ctx: MachineContext, event: Event) -> MachineContext:
    return ctx.with_selection(ctx.selection.with_asset(None))


class TransitionTable:
    """
    Transition Table: (CurrentState, Event) → Transition

    Global transitions (selection events) apply in every state and
    never change the state.
    """

    def __init__(self):
        self._table: Dict[TransitionKey, Transition] = {}
        self._global: Dict[EventType, SelectionAction] = {}

        self._build_table()

    def _build_table(self):
        """Define all valid transitions"""

        # ===== Any state =====
        self._add_global(EventType.SELECT_FUND, _select_fund)
        self._add_global(EventType.SELECT_ASSET, _select_asset)
        self._add_global(EventType.UNSELECT_ASSET, _unselect_asset)

        # ===== IDLE =====
        self._add(TreeState.IDLE, EventType.DELETE_ASSET, TreeState.DELETING_ASSET, guards.has_selected_asset)
        self._add(TreeState.IDLE, EventType.ADD_ASSET, TreeState.ADDING_ASSET, guards.has_selected_fund)
        self._add(TreeState.IDLE, EventType.REPLACE_ASSET, TreeState.REPLACING_ASSET, guards.can_replace)
        self._add(TreeState.IDLE, EventType.OPEN_IMPORT_DIALOG, TreeState.IMPORT_DIALOG_OPEN)

        # ===== IMPORT_DIALOG_OPEN (composite) =====
        self._add(TreeState.IMPORT_DIALOG_OPEN, EventType.CLOSE_IMPORT_DIALOG, TreeState.IDLE)

        # Settlement of invoking states is keyed by invocation, see _settle()

    def _add(self, from_state: TreeState, event: EventType, to_state: TreeState, guard: Guard = guards.always):
        """Add a transition to the table"""
        key = (from_state, event)
        if key in self._table:
            raise ValueError(f"Duplicate transition: {key}")
        self._table[key] = Transition(to_state, guard)

    def _add_global(self, event: EventType, action: SelectionAction):
        if event in self._global:
            raise ValueError(f"Duplicate global transition: {event}")
        self._global[event] = action

    def get_transition(self, current_state: TreeState, event: EventType) -> Optional[Transition]:
        return self._table.get((current_state, event))

    def get_global_action(self, event: EventType) -> Optional[SelectionAction]:
        return self._global.get(event)

    def is_valid_transition(self, current_state: TreeState, event: EventType) -> bool:
        """Check if a transition is defined, ignoring guards"""
        return (current_state, event) in self._table or event in self._global

    def get_valid_events(self, current_state: TreeState) -> List[EventType]:
        """Get all events with a transition from current_state, ignoring guards"""
        events = [event for (state, event) in self._table if state == current_state]
        return events + list(self._global)

    def get_transition_count(self) -> int:
        return len(self._table) + len(self._global)


# Singleton instance
_transition_table: Optional[TransitionTable] = None


def get_transition_table() -> TransitionTable:
    """Get global transition table singleton"""
    global _transition_table
    if _transition_table is None:
        _transition_table = TransitionTable()
    return _transition_table


# =============================================================================
# TRANSITION FUNCTION
# =============================================================================

def initial_transition(context: Optional[MachineContext] = None) -> TransitionResult:
    """Enter the initial state, which starts the initial fetch."""
    return _enter(MachineState(), TreeState.LOADING_INITIAL, context or MachineContext())


def transition(
    state: MachineState,
    event: Event,
    context: MachineContext,
    *,
    recover_import_failure: bool = True,
) -> TransitionResult:
    """
    Process one event.

    Args:
        state: Current machine state
        event: Event to process
        context: Current machine context
        recover_import_failure: Whether a failed import returns the
            dialog to IDLE (otherwise it stays in IMPORTING)

    Returns:
        TransitionResult with the new state, context and effects
    """
    table = get_transition_table()

    selection_action = table.get_global_action(event.type)
    if selection_action is not None:
        return TransitionResult(state, selection_action(context, event))

    if event.type in INTERNAL_EVENTS:
        return _settle(state, event, context, recover_import_failure)

    if state.value == TreeState.IMPORT_DIALOG_OPEN and event.type != EventType.CLOSE_IMPORT_DIALOG:
        return _dialog_event(state, event, context, recover_import_failure)

    t = table.get_transition(state.value, event.type)
    if t is None or not t.guard(context):
        return TransitionResult(state, context, handled=False)

    effects: Tuple[Effect, ...] = ()
    if event.type == EventType.CLOSE_IMPORT_DIALOG and state.invocation is not None:
        # Not cancelled: the result is ignored when it arrives
        effects = (AbandonOperation(state.invocation),)

    result = _enter(state, t.target, context)
    return TransitionResult(result.state, result.context, effects + result.effects)


def can(state: MachineState, context: MachineContext, event_type) -> bool:
    """
    True iff a transition for event_type is defined from the current
    state and its guard currently passes.
    """
    event_type = EventType(event_type)
    if event_type in INTERNAL_EVENTS:
        return False

    table = get_transition_table()
    if table.get_global_action(event_type) is not None:
        return True

    if state.value == TreeState.IMPORT_DIALOG_OPEN and event_type != EventType.CLOSE_IMPORT_DIALOG:
        return dialog_can(state.dialog, event_type)

    t = table.get_transition(state.value, event_type)
    return t is not None and t.guard(context)


def _enter(state: MachineState, target: TreeState, context: MachineContext) -> TransitionResult:
    """Enter target; invoking states build their input snapshot here."""
    kind = ENTRY_OPERATIONS.get(target)
    if kind is None:
        dialog = INITIAL_DIALOG_STATE if target == TreeState.IMPORT_DIALOG_OPEN else None
        return TransitionResult(
            MachineState(target, dialog=dialog, invocation_seq=state.invocation_seq),
            context,
        )

    seq = state.invocation_seq + 1
    try:
        payload = build_input(kind, context)
    except OperationInputError as e:
        # Same path as a backend failure
        invocation = Invocation(seq, kind)
        log_event(
            logger,
            "fsm_operation_failed",
            message=f"{kind.value} failed before invocation: {e.reason}",
            level=logging.WARNING,
            operation=kind.value,
            invocation_id=seq,
            error_type=type(e).__name__,
            error=e.reason,
        )
        return TransitionResult(
            MachineState(TreeState.IDLE, invocation_seq=seq),
            FAILURE_ACTIONS[kind](context, invocation),
        )

    invocation = Invocation(seq, kind, payload)
    return TransitionResult(
        MachineState(target, invocation=invocation, invocation_seq=seq),
        context,
        (InvokeOperation(invocation),),
    )


def _settle(
    state: MachineState,
    event: Event,
    context: MachineContext,
    recover_import_failure: bool,
) -> TransitionResult:
    """Fold an operation result into the context."""
    invocation = state.invocation
    if invocation is None or event.invocation_id != invocation.id:
        return TransitionResult(state, context, handled=False, stale=True)

    if state.value == TreeState.IMPORT_DIALOG_OPEN:
        return _dialog_event(state, event, context, recover_import_failure)

    if event.type == EventType.OPERATION_DONE:
        new_context = SUCCESS_ACTIONS[invocation.kind](context, invocation, event.output)
    else:
        new_context = FAILURE_ACTIONS[invocation.kind](context, invocation)

    return TransitionResult(
        MachineState(TreeState.IDLE, invocation_seq=state.invocation_seq),
        new_context,
    )


def _dialog_event(
    state: MachineState,
    event: Event,
    context: MachineContext,
    recover_import_failure: bool,
) -> TransitionResult:
    """Delegate an event to the import dialog sub-machine."""
    step = dialog_transition(
        state.dialog,
        event,
        context,
        pending=state.invocation,
        next_invocation_id=state.invocation_seq + 1,
        recover_on_failure=recover_import_failure,
    )
    if step is None:
        return TransitionResult(state, context, handled=False)

    seq = step.pending.id if step.pending is not None else state.invocation_seq

    if step.dialog in FINAL_DIALOG_STATES:
        # Reaching the final sub-state exits the composite state
        return TransitionResult(
            MachineState(TreeState.IDLE, invocation_seq=seq),
            step.context,
            step.effects,
        )

    return TransitionResult(
        MachineState(
            TreeState.IMPORT_DIALOG_OPEN,
            dialog=step.dialog,
            invocation=step.pending,
            invocation_seq=seq,
        ),
        step.context,
        step.effects,
    )
