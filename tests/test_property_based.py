#!/usr/bin/env python3
"""
Property-Based Tests for the Tree Machine

Uses Hypothesis to drive the pure transition function with random
sequences of user events and operation settlements, checking:
- can() agrees with what transition() actually does
- ignored events leave state and context untouched
- asset ids stay unique when backends return unique ids
- the Synchronizing tag marks exactly the states waiting for a result
"""

import itertools

from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from tree_editor import config
from tree_editor.fsm import Event, EventType, Tag, TreeState, can, initial_transition, transition
from tree_editor.fsm.effects import OperationKind
from tree_editor.fsm.exceptions import BackendError
from tree_editor.models import Asset, AssetsOutput, AssetType
from tree_editor.operations import SEED_ASSETS

USER_EVENTS = [
    EventType.DELETE_ASSET,
    EventType.ADD_ASSET,
    EventType.REPLACE_ASSET,
    EventType.OPEN_IMPORT_DIALOG,
    EventType.CLOSE_IMPORT_DIALOG,
    EventType.IMPORT_DATA,
    EventType.UNSELECT_ASSET,
]


class TreeMachineRules(RuleBasedStateMachine):
    """
    Stateful property-based testing for the transition function.

    Backend outputs are generated with fresh ids, so any duplicate in the
    store would come from the machine itself.
    """

    def __init__(self):
        super().__init__()
        r = initial_transition()
        self.state = r.state
        self.context = r.context
        self.ids = itertools.count(1)

    def _apply(self, event: Event):
        before_state, before_context = self.state, self.context
        r = transition(self.state, event, self.context)
        if not r.handled:
            assert r.state is before_state
            assert r.context is before_context
            assert r.effects == ()
        self.state, self.context = r.state, r.context
        return r

    def _output_for(self, kind: OperationKind, fund_id):
        n = next(self.ids)
        if kind == OperationKind.FETCH_ASSETS:
            return AssetsOutput(assets=SEED_ASSETS)
        if kind == OperationKind.IMPORT_ASSETS:
            return AssetsOutput(assets=[
                Asset(id=f"imp-{n}", code=f"imp{n}", type=AssetType.STRATEGY, name=f"Import {n}", weight="1%"),
            ])
        if kind in (OperationKind.ADD_ASSET, OperationKind.REPLACE_ASSET):
            return Asset(id=f"{fund_id}#{n}", code="new-code", type=AssetType.FUND, name=fund_id, weight="50%")
        return None

    @rule(index=st.integers(min_value=0, max_value=20))
    def select_existing_asset(self, index):
        ids = self.context.store.ids()
        if not ids:
            return
        r = self._apply(Event.select_asset(ids[index % len(ids)]))
        assert r.handled
        assert r.state.value == self.state.value

    @rule(fund=st.sampled_from(config.FUNDS))
    def select_fund(self, fund):
        r = self._apply(Event.select_fund(fund))
        assert r.handled
        assert self.context.selected_fund_id == fund

    @rule(event_type=st.sampled_from(USER_EVENTS))
    def user_event(self, event_type):
        possible = can(self.state, self.context, event_type)
        r = self._apply(Event.of(event_type))
        assert r.handled == possible

    @rule(succeed=st.booleans())
    def settle(self, succeed):
        invocation = self.state.invocation
        if invocation is None:
            return

        kind = invocation.kind
        fund_id = getattr(invocation.input, "fund_id", None) or getattr(invocation.input, "new_fund_id", None)
        if succeed:
            event = Event.done(invocation.id, self._output_for(kind, fund_id))
        else:
            event = Event.failed(invocation.id, BackendError("simulated"))

        size_before = len(self.context.store)
        r = self._apply(event)
        assert r.handled

        if kind in (OperationKind.DELETE_ASSET, OperationKind.REPLACE_ASSET):
            assert self.context.selected_asset_id is None
        if kind == OperationKind.ADD_ASSET:
            assert self.context.selected_fund_id is None
            assert len(self.context.store) == size_before + (1 if succeed else 0)

    @rule(offset=st.integers(min_value=1, max_value=5))
    def stale_result(self, offset):
        r = self._apply(Event.done(self.state.invocation_seq + offset, None))
        assert not r.handled
        assert r.stale

    @invariant()
    def ids_are_unique(self):
        assert not self.context.store.duplicate_ids()

    @invariant()
    def synchronizing_iff_waiting(self):
        assert self.state.has_tag(Tag.SYNCHRONIZING) == (self.state.invocation is not None)

    @invariant()
    def dialog_only_when_open(self):
        assert (self.state.dialog is not None) == (self.state.value == TreeState.IMPORT_DIALOG_OPEN)

    @invariant()
    def selected_asset_exists_when_idle(self):
        selected = self.context.selected_asset_id
        if self.state.value == TreeState.IDLE and selected is not None:
            assert selected in self.context.store

    @invariant()
    def internal_events_never_possible(self):
        assert not can(self.state, self.context, EventType.OPERATION_DONE)
        assert not can(self.state, self.context, EventType.OPERATION_FAILED)


TreeMachineRules.TestCase.settings = settings(
    max_examples=50,
    stateful_step_count=30,
    deadline=None,
)
TestTreeMachineRules = TreeMachineRules.TestCase
