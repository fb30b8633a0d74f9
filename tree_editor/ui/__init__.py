# ui/__init__.py
"""
UI Module - Rich-based Terminal Output
"""

from .console_ui import render, render_action_bar, render_asset_table, render_import_dialog, show, show_funds

__all__ = [
    'render',
    'render_action_bar',
    'render_asset_table',
    'render_import_dialog',
    'show',
    'show_funds',
]
