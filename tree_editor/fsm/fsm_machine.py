#!/usr/bin/env python3
"""
FSM Core Engine - asyncio runtime for the tree machine

Orchestrates transitions, effects, and logging.

Run-to-completion: send() processes one event fully (transition,
context update, effect execution, listener notification) before the
next one. Events sent while an event is being processed (e.g. from a
listener) are queued and drained afterwards. Operation results come
back as internal events through the same path.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple, Union

from tree_editor import config
from tree_editor.event_schemas import (
    EventIgnored,
    FsmTransition,
    ImportAbandoned,
    OperationFailed,
    OperationInvoked,
    OperationSettled,
)
from tree_editor.logger_factory import log_event
from tree_editor.models import Asset
from tree_editor.operations import AssetBackend, run_operation
from tree_editor.trace_context import bind_invocation

from .effects import AbandonOperation, Effect, Invocation, InvokeOperation
from .exceptions import MachineNotRunningError
from .fsm_events import Event, EventType
from .phases import Tag, TreeState
from .state import MachineContext, MachineState
from .transitions import can, initial_transition, transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MachineSnapshot:
    """
    Read-only view handed to collaborators.

    Queries only: collaborators never write to the machine's context.
    """
    state: MachineState
    context: MachineContext

    @property
    def value(self) -> TreeState:
        return self.state.value

    @property
    def path(self) -> str:
        return self.state.path

    @property
    def assets(self) -> Tuple[Asset, ...]:
        return self.context.assets

    @property
    def selected_fund_id(self) -> Optional[str]:
        return self.context.selected_fund_id

    @property
    def selected_asset_id(self) -> Optional[str]:
        return self.context.selected_asset_id

    def can(self, event_type) -> bool:
        return can(self.state, self.context, event_type)

    def has_tag(self, tag=Tag.SYNCHRONIZING) -> bool:
        return self.state.has_tag(tag)

    def matches(self, path) -> bool:
        return self.state.matches(path)


Listener = Callable[[MachineSnapshot], None]


class TreeMachine:
    """
    Tree editor state machine runtime.

    Responsibilities:
    1. Process events via the pure transition function
    2. Execute effects (spawn operation tasks, abandon imports)
    3. Deliver operation results back as internal events
    4. Log all transitions and operations
    5. Notify listeners with the new snapshot

    Args:
        backend: AssetBackend implementing the five operations
        recover_import_failure: Failed imports return the dialog to its
            idle sub-state (default: config.IMPORT_FAILURE_RECOVERY)
    """

    def __init__(self, backend: AssetBackend, recover_import_failure: Optional[bool] = None):
        self.backend = backend
        if recover_import_failure is None:
            recover_import_failure = config.IMPORT_FAILURE_RECOVERY
        self.recover_import_failure = recover_import_failure

        self._state = MachineState()
        self._context = MachineContext()
        self._running = False
        self._processing = False
        self._queue: Deque[Event] = deque()
        self._tasks: Dict[int, asyncio.Task] = {}
        self._started_at: Dict[int, float] = {}
        self._abandoned: Set[int] = set()
        self._listeners: List[Listener] = []

        self._transition_count = 0
        self._ignored_event_count = 0
        self._dropped_result_count = 0
        self._operation_failure_count = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> MachineSnapshot:
        """
        Enter the initial state and start the initial fetch.

        Must be called from a running event loop.
        """
        if self._running:
            logger.warning("TreeMachine already started")
            return self.snapshot

        asyncio.get_running_loop()
        self._running = True
        result = initial_transition()
        self._state, self._context = result.state, result.context
        logger.info(f"TreeMachine started in {self._state.path}")

        self._execute_effects(result.effects)
        self._notify()
        return self.snapshot

    def stop(self) -> None:
        """Cancel outstanding operations and reject further events."""
        if not self._running:
            return
        self._running = False
        for task in list(self._tasks.values()):
            task.cancel()
        self._queue.clear()
        logger.info(f"TreeMachine stopped ({len(self._tasks)} operations cancelled)")

    @property
    def is_running(self) -> bool:
        return self._running

    async def wait_until_settled(self) -> MachineSnapshot:
        """Wait until no operation task is outstanding (abandoned ones included)."""
        while True:
            pending = [t for t in self._tasks.values() if not t.done()]
            if not pending:
                return self.snapshot
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def send(self, event: Union[Event, EventType, str]) -> MachineSnapshot:
        """
        Process an event to completion.

        Args:
            event: Event, or an EventType / event name for events without payload

        Returns:
            Snapshot after the event (and any queued events) were processed

        Raises:
            MachineNotRunningError: If the machine is not started or stopped
            ValueError: Unknown event name, or a payload event given by name
        """
        if not self._running:
            raise MachineNotRunningError("TreeMachine is not running")

        if not isinstance(event, Event):
            event = Event.of(event)

        self._queue.append(event)
        if self._processing:
            return self.snapshot

        self._processing = True
        try:
            while self._queue and self._running:
                self._process(self._queue.popleft())
        finally:
            self._processing = False

        return self.snapshot

    def _process(self, event: Event) -> None:
        from_state = self._state
        result = transition(
            self._state,
            event,
            self._context,
            recover_import_failure=self.recover_import_failure,
        )

        if not result.handled:
            self._log_ignored(event, result.stale)
            return

        self._state, self._context = result.state, result.context
        self._transition_count += 1

        ev = FsmTransition(
            trigger=event.type.value,
            from_state=from_state.path,
            to_state=self._state.path,
            asset_count=len(self._context.store),
            selected_fund_id=self._context.selected_fund_id,
            selected_asset_id=self._context.selected_asset_id,
            transition_count=self._transition_count,
        )
        log_event(logger, "fsm_transition", level=logging.DEBUG, **ev.model_dump())

        self._execute_effects(result.effects)
        self._notify()

    def _log_ignored(self, event: Event, stale: bool) -> None:
        if stale:
            self._dropped_result_count += 1
            self._abandoned.discard(event.invocation_id)
            name = "fsm_stale_result_dropped"
        else:
            self._ignored_event_count += 1
            name = "fsm_event_ignored"

        ev = EventIgnored(
            trigger=event.type.value,
            state=self._state.path,
            reason="stale_result" if stale else "no_transition",
            invocation_id=event.invocation_id,
        )
        log_event(logger, name, level=logging.DEBUG, **ev.model_dump())

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _execute_effects(self, effects: Tuple[Effect, ...]) -> None:
        for effect in effects:
            if isinstance(effect, InvokeOperation):
                self._spawn(effect.invocation)
            elif isinstance(effect, AbandonOperation):
                self._abandon(effect.invocation)
            else:
                raise TypeError(f"Unknown effect: {effect!r}")

    def _spawn(self, invocation: Invocation) -> None:
        ev = OperationInvoked(
            operation=invocation.kind.value,
            invocation_id=invocation.id,
            input=invocation.input.model_dump() if invocation.input is not None else None,
        )
        log_event(logger, "fsm_operation_invoked", **ev.model_dump())

        self._started_at[invocation.id] = time.monotonic()
        with bind_invocation(invocation.id):
            task = asyncio.get_running_loop().create_task(
                self._run(invocation),
                name=f"{invocation.kind.value}-{invocation.id}",
            )
        self._tasks[invocation.id] = task
        task.add_done_callback(lambda _t, inv_id=invocation.id: self._tasks.pop(inv_id, None))

    def _abandon(self, invocation: Invocation) -> None:
        self._abandoned.add(invocation.id)
        ev = ImportAbandoned(invocation_id=invocation.id)
        log_event(
            logger,
            "fsm_import_abandoned",
            message=f"Import {invocation.id} abandoned, its result will be ignored",
            **ev.model_dump(),
        )

    async def _run(self, invocation: Invocation) -> None:
        try:
            output = await run_operation(self.backend, invocation)
        except asyncio.CancelledError:
            self._started_at.pop(invocation.id, None)
            self._abandoned.discard(invocation.id)
            raise
        except Exception as e:
            self._operation_failure_count += 1
            ev = OperationFailed(
                operation=invocation.kind.value,
                invocation_id=invocation.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            log_event(
                logger,
                "fsm_operation_failed",
                message=f"{invocation.kind.value} failed: {e}",
                level=logging.WARNING,
                **ev.model_dump(),
            )
            self._settled(invocation, succeeded=False)
            event = Event.failed(invocation.id, e)
        else:
            self._settled(invocation, succeeded=True)
            event = Event.done(invocation.id, output)

        if self._running:
            self.send(event)

    def _settled(self, invocation: Invocation, succeeded: bool) -> None:
        started = self._started_at.pop(invocation.id, time.monotonic())
        ev = OperationSettled(
            operation=invocation.kind.value,
            invocation_id=invocation.id,
            succeeded=succeeded,
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )
        log_event(logger, "fsm_operation_settled", **ev.model_dump())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> MachineSnapshot:
        return MachineSnapshot(self._state, self._context)

    @property
    def state(self) -> MachineState:
        return self._state

    @property
    def context(self) -> MachineContext:
        return self._context

    def can(self, event_type) -> bool:
        return can(self._state, self._context, event_type)

    def has_tag(self, tag=Tag.SYNCHRONIZING) -> bool:
        return self._state.has_tag(tag)

    def matches(self, path) -> bool:
        return self._state.matches(path)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with the snapshot after every processed event.

        Returns:
            Function that unsubscribes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                # Listener errors never reach the event loop
                logger.exception("TreeMachine listener failed")

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        return {
            'state': self._state.path,
            'total_transitions': self._transition_count,
            'ignored_events': self._ignored_event_count,
            'dropped_results': self._dropped_result_count,
            'operation_failures': self._operation_failure_count,
            'operations_in_flight': sum(1 for t in self._tasks.values() if not t.done()),
            'abandoned_operations': len(self._abandoned),
        }

    def __repr__(self):
        return (
            f"<TreeMachine: {self._state.path}, {len(self._context.store)} assets, "
            f"{self._transition_count} transitions>"
        )
