"""
Guard predicates.

Pure functions of a MachineContext. They are evaluated only when the
triggering event is processed; a failing guard means the event is ignored.
"""

from .state import MachineContext


def has_selected_asset(ctx: MachineContext) -> bool:
    return ctx.selected_asset_id is not None


def has_selected_fund(ctx: MachineContext) -> bool:
    return ctx.selected_fund_id is not None


def can_replace(ctx: MachineContext) -> bool:
    """Replace needs both the asset to supersede and the fund to replace it with."""
    return has_selected_asset(ctx) and has_selected_fund(ctx)


def always(ctx: MachineContext) -> bool:
    return True
