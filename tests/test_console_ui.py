#!/usr/bin/env python3
"""
Tests for the Rich console rendering and command parsing.
"""

import io

import pytest
from rich.console import Console

from tree_editor import config
from tree_editor.fsm import Event, EventType, initial_transition, transition
from tree_editor.fsm.fsm_machine import MachineSnapshot
from tree_editor.models import AssetsOutput
from tree_editor.operations import SEED_ASSETS
from tree_editor.ui import render_action_bar, render_asset_table, render_import_dialog, show, show_funds
from tree_editor.ui.commands import CommandError, parse_command, resolve_fund


def snapshot_after(*events, assets=SEED_ASSETS):
    r = initial_transition()
    r = transition(r.state, Event.done(r.state.invocation.id, AssetsOutput(assets=assets)), r.context)
    for event in events:
        r = transition(r.state, event, r.context)
    return MachineSnapshot(r.state, r.context)


def render_text(renderable) -> str:
    target = Console(file=io.StringIO(), width=140, color_system=None)
    target.print(renderable)
    return target.file.getvalue()


class TestRendering:

    def test_asset_table_lists_assets(self):
        text = render_text(render_asset_table(snapshot_after()))

        for header in ("Asset Code", "Asset Type", "Asset Name", "Strategic Weight"):
            assert header in text
        for asset in SEED_ASSETS:
            assert asset.code in text
            assert asset.name in text
        assert "[x]" not in text

    def test_selected_row_marked(self):
        text = render_text(render_asset_table(snapshot_after(Event.select_asset("2"))))
        line = next(l for l in text.splitlines() if "Strategy B" in l)
        assert "[x]" in line

    def test_loading_caption(self):
        r = initial_transition()
        text = render_text(render_asset_table(MachineSnapshot(r.state, r.context)))
        assert "Loading" in text

    def test_empty_caption(self):
        text = render_text(render_asset_table(snapshot_after(assets=[])))
        assert "No assets" in text

    def test_action_bar_shows_selected_fund(self):
        text = render_text(render_action_bar(snapshot_after(Event.select_fund("FUND – CCC"))))
        assert "FUND – CCC" in text
        assert "Replace" in text

    def test_dialog_hidden_when_closed(self):
        assert render_import_dialog(snapshot_after()) is None

    def test_dialog_idle_and_importing(self):
        idle = render_text(render_import_dialog(snapshot_after(Event.of(EventType.OPEN_IMPORT_DIALOG))))
        assert "Import data" in idle

        importing = render_text(render_import_dialog(snapshot_after(
            Event.of(EventType.OPEN_IMPORT_DIALOG),
            Event.of(EventType.IMPORT_DATA),
        )))
        assert "Importing" in importing

    def test_show_prints_state_path(self):
        target = Console(file=io.StringIO(), width=140, color_system=None)
        show(snapshot_after(Event.of(EventType.OPEN_IMPORT_DIALOG)), target)
        assert "state=import_dialog_open.idle" in target.file.getvalue()

    def test_show_funds_numbered(self):
        target = Console(file=io.StringIO(), width=80, color_system=None)
        show_funds(config.FUNDS, target=target)
        text = target.file.getvalue()
        assert "1" in text and "FUND – AAA" in text
        assert "FUND – FFF" in text


class TestCommands:

    def test_select(self):
        assert parse_command("select 2", config.FUNDS) == Event.select_asset("2")

    def test_fund_by_number_and_suffix(self):
        assert parse_command("fund 1", config.FUNDS) == Event.select_fund("FUND – AAA")
        assert parse_command("fund bbb", config.FUNDS) == Event.select_fund("FUND – BBB")
        assert parse_command("fund FUND – CCC", config.FUNDS) == Event.select_fund("FUND – CCC")

    @pytest.mark.parametrize("line, event_type", [
        ("delete", EventType.DELETE_ASSET),
        ("add", EventType.ADD_ASSET),
        ("replace", EventType.REPLACE_ASSET),
        ("import", EventType.OPEN_IMPORT_DIALOG),
        ("import-data", EventType.IMPORT_DATA),
        ("close", EventType.CLOSE_IMPORT_DIALOG),
        ("unselect", EventType.UNSELECT_ASSET),
        ("DELETE", EventType.DELETE_ASSET),
    ])
    def test_simple_events(self, line, event_type):
        assert parse_command(line, config.FUNDS) == Event.of(event_type)

    @pytest.mark.parametrize("line, command", [
        ("quit", "quit"),
        ("exit", "quit"),
        ("?", "help"),
        ("wait", "wait"),
        ("stats", "stats"),
        ("funds", "funds"),
    ])
    def test_console_commands(self, line, command):
        assert parse_command(line, config.FUNDS) == command

    @pytest.mark.parametrize("line", ["", "   ", "bogus", "select", "fund", "fund 99", "fund zzz"])
    def test_errors(self, line):
        with pytest.raises(CommandError):
            parse_command(line, config.FUNDS)

    def test_ambiguous_suffix(self):
        with pytest.raises(CommandError):
            resolve_fund("a", ["FUND – A", "FUND – AA"])
