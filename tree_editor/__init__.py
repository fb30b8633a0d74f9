"""
Tree Editor - asset tree editing driven by an explicit state machine

Packages:
- fsm: states, events, transition table and the asyncio runtime
- ui: rich console presenter
"""

__version__ = "0.1.0"
