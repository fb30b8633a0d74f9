#!/usr/bin/env python3
"""
Action functions executed during state transitions.

Two families:
1. Input builders - compute an operation's input from the context when
   an invoking state is entered (the snapshot the operation runs with)
2. Reconciliation actions - fold an operation's result (or failure)
   into a new MachineContext

All actions are pure: they take a context and return a new one.
"""

import logging
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from tree_editor.models import (
    AddAssetInput,
    Asset,
    AssetsOutput,
    DeleteAssetInput,
    ReplaceAssetInput,
)

from .effects import Invocation, OperationKind
from .exceptions import OperationInputError
from .state import AssetStore, MachineContext

logger = logging.getLogger(__name__)

SuccessAction = Callable[[MachineContext, Invocation, Any], MachineContext]
FailureAction = Callable[[MachineContext, Invocation], MachineContext]


# =============================================================================
# INPUT BUILDERS
# =============================================================================

def build_input(kind: OperationKind, ctx: MachineContext) -> Optional[BaseModel]:
    """
    Build the input snapshot for an operation.

    Raises:
        OperationInputError: If a required selection is unset
    """
    if kind == OperationKind.DELETE_ASSET:
        if ctx.selected_asset_id is None:
            raise OperationInputError(kind.value, "No asset selected")
        return DeleteAssetInput(asset_id=ctx.selected_asset_id)

    if kind == OperationKind.ADD_ASSET:
        if ctx.selected_fund_id is None:
            raise OperationInputError(kind.value, "No fund selected")
        return AddAssetInput(fund_id=ctx.selected_fund_id)

    if kind == OperationKind.REPLACE_ASSET:
        if ctx.selected_asset_id is None:
            raise OperationInputError(kind.value, "No asset selected")
        if ctx.selected_fund_id is None:
            raise OperationInputError(kind.value, "No fund selected")
        return ReplaceAssetInput(
            old_asset_id=ctx.selected_asset_id,
            new_fund_id=ctx.selected_fund_id,
        )

    # fetch-all and import-many take no input
    return None


# =============================================================================
# RECONCILIATION: SUCCESS
# =============================================================================

def action_load_assets(ctx: MachineContext, invocation: Invocation, output: AssetsOutput) -> MachineContext:
    """Transition: LOADING_INITIAL → IDLE (fetched)"""
    return ctx.with_store(AssetStore().appended(*output.assets))


def action_remove_deleted(ctx: MachineContext, invocation: Invocation, output: Any = None) -> MachineContext:
    """
    Transition: DELETING_ASSET → IDLE

    Runs on success and on failure: the local view stays optimistic
    about deletions.

    Removes the asset selected at settlement time; the invocation
    input only fed the backend call. Nothing is removed when no asset
    is selected any more.
    """
    selection = ctx.selection.with_asset(None)
    asset_id = ctx.selected_asset_id
    if asset_id is None:
        return ctx.with_selection(selection)

    logger.debug(f"Removing asset {asset_id} from store")
    return MachineContext(store=ctx.store.without(asset_id), selection=selection)


def action_append_added(ctx: MachineContext, invocation: Invocation, output: Asset) -> MachineContext:
    """Transition: ADDING_ASSET → IDLE (added)"""
    return MachineContext(
        store=ctx.store.appended(output),
        selection=ctx.selection.with_fund(None),
    )


def action_swap_replaced(ctx: MachineContext, invocation: Invocation, output: Asset) -> MachineContext:
    """Transition: REPLACING_ASSET → IDLE (replaced). Swaps out the asset selected at settlement time."""
    store = ctx.store
    if ctx.selected_asset_id is not None:
        store = store.without(ctx.selected_asset_id)
    return MachineContext(
        store=store.appended(output),
        selection=ctx.selection.cleared(),
    )


def action_append_imported(ctx: MachineContext, invocation: Invocation, output: AssetsOutput) -> MachineContext:
    """Transition: IMPORTING → DONE"""
    return ctx.with_store(ctx.store.appended(*output.assets))


# =============================================================================
# RECONCILIATION: FAILURE
# =============================================================================

def action_load_empty(ctx: MachineContext, invocation: Invocation) -> MachineContext:
    """Transition: LOADING_INITIAL → IDLE (fetch failed)"""
    return ctx.with_store(AssetStore())


def action_clear_fund(ctx: MachineContext, invocation: Invocation) -> MachineContext:
    """Transition: ADDING_ASSET → IDLE (add failed). Store untouched."""
    return ctx.with_selection(ctx.selection.with_fund(None))


def action_clear_selection(ctx: MachineContext, invocation: Invocation) -> MachineContext:
    """Transition: REPLACING_ASSET → IDLE (replace failed). Store untouched."""
    return ctx.with_selection(ctx.selection.cleared())


def action_keep(ctx: MachineContext, invocation: Invocation) -> MachineContext:
    """Import failed: nothing to reconcile."""
    return ctx


SUCCESS_ACTIONS: Dict[OperationKind, SuccessAction] = {
    OperationKind.FETCH_ASSETS: action_load_assets,
    OperationKind.DELETE_ASSET: action_remove_deleted,
    OperationKind.ADD_ASSET: action_append_added,
    OperationKind.REPLACE_ASSET: action_swap_replaced,
    OperationKind.IMPORT_ASSETS: action_append_imported,
}

FAILURE_ACTIONS: Dict[OperationKind, FailureAction] = {
    OperationKind.FETCH_ASSETS: action_load_empty,
    OperationKind.DELETE_ASSET: action_remove_deleted,
    OperationKind.ADD_ASSET: action_clear_fund,
    OperationKind.REPLACE_ASSET: action_clear_selection,
    OperationKind.IMPORT_ASSETS: action_keep,
}
