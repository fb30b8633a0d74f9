#!/usr/bin/env python3
"""
Console UI - Rich-based rendering of the tree editor

Renders a MachineSnapshot:
- Action bar (Delete, fund selector, Add, Replace, Import) with each
  action enabled according to snapshot.can() and the Synchronizing tag
- Asset table (Asset Code, Asset Type, Asset Name, Strategic Weight),
  codes indented by asset type, the selected row highlighted
- Import dialog panel while the dialog is open

Rendering only reads the snapshot; input goes back through events.
"""

from datetime import datetime
from typing import Optional, Sequence

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tree_editor.fsm.fsm_events import EventType
from tree_editor.fsm.fsm_machine import MachineSnapshot
from tree_editor.fsm.phases import DialogState, Tag, TreeState
from tree_editor.models import Asset, AssetType

# Global console instance
console = Console()

# Code column indentation per asset type
INDENT = {
    AssetType.TREE: "",
    AssetType.STRATEGY: "  ",
    AssetType.FUND: "    ",
}

ICON = {
    AssetType.TREE: "▸",
    AssetType.STRATEGY: "▸",
    AssetType.FUND: "•",
}


def ts() -> str:
    """Current timestamp string (HH:MM:SS)."""
    return datetime.now().strftime("%H:%M:%S")


def _button(label: str, enabled: bool) -> Text:
    if enabled:
        return Text(f"[ {label} ]", style="bold white on blue")
    return Text(f"[ {label} ]", style="dim")


def render_action_bar(snapshot: MachineSnapshot) -> Table:
    """
    Header row of the editor.

    The fund selector is disabled while synchronizing; the selection
    itself is still accepted by the machine.
    """
    synchronizing = snapshot.has_tag(Tag.SYNCHRONIZING)

    fund_label = snapshot.selected_fund_id or "---"
    fund = Text(f"Fund: {fund_label}", style="dim" if synchronizing else "cyan")

    bar = Table.grid(padding=(0, 2))
    for _ in range(5):
        bar.add_column()
    bar.add_row(
        _button("Delete", snapshot.can(EventType.DELETE_ASSET)),
        fund,
        _button("Add", snapshot.can(EventType.ADD_ASSET)),
        _button("Replace", snapshot.can(EventType.REPLACE_ASSET)),
        _button("Import", snapshot.can(EventType.OPEN_IMPORT_DIALOG)),
    )
    return bar


def _code_cell(asset: Asset, selected: bool) -> Text:
    text = Text(INDENT[asset.type])
    text.append(f"{ICON[asset.type]} ")
    text.append(asset.code, style="bold blue" if selected else "bold")
    return text


def render_asset_table(snapshot: MachineSnapshot) -> Table:
    """Asset table, one row per asset in store order."""
    table = Table(
        show_header=True,
        header_style="bold magenta",
        border_style="magenta",
        expand=False,
    )
    table.add_column("", width=3)
    table.add_column("Asset Code", min_width=12)
    table.add_column("Asset Type")
    table.add_column("Asset Name")
    table.add_column("Strategic Weight", justify="right")

    for asset in snapshot.assets:
        selected = snapshot.selected_asset_id == asset.id
        table.add_row(
            Text("[x]" if selected else "[ ]"),
            _code_cell(asset, selected),
            asset.type.value,
            asset.name,
            asset.weight,
            style="on grey23" if selected else None,
        )

    if snapshot.matches(TreeState.LOADING_INITIAL):
        table.caption = "Loading…"
    elif not snapshot.assets:
        table.caption = "No assets"

    return table


def render_import_dialog(snapshot: MachineSnapshot) -> Optional[Panel]:
    """Import dialog panel, or None while the dialog is closed."""
    if not snapshot.matches(TreeState.IMPORT_DIALOG_OPEN):
        return None

    if snapshot.state.dialog == DialogState.IMPORTING:
        body = Text("Importing…", style="yellow")
    else:
        body = Text.assemble(
            "Import assets from file. ",
            _button("Import data", snapshot.can(EventType.IMPORT_DATA)),
            "  ",
            _button("Close", snapshot.can(EventType.CLOSE_IMPORT_DIALOG)),
        )
    return Panel(body, title="Import", border_style="cyan", expand=False)


def render(snapshot: MachineSnapshot) -> Group:
    parts = [render_action_bar(snapshot), render_asset_table(snapshot)]
    dialog = render_import_dialog(snapshot)
    if dialog is not None:
        parts.append(dialog)
    parts.append(Text(f"{ts()} state={snapshot.path}", style="dim"))
    return Group(*parts)


def show(snapshot: MachineSnapshot, target: Optional[Console] = None) -> None:
    (target or console).print(render(snapshot))


def show_funds(funds: Sequence[str], selected: Optional[str] = None, target: Optional[Console] = None) -> None:
    """Numbered fund list for the `fund N` command."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(justify="right", style="dim")
    table.add_column()
    for i, fund in enumerate(funds, start=1):
        table.add_row(str(i), Text(fund, style="bold cyan" if fund == selected else ""))
    (target or console).print(table)
