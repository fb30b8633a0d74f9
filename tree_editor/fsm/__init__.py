"""
FSM (Finite State Machine) for the Tree Editor

Components:
- phases.py: TreeState / DialogState / Tag definitions
- fsm_events.py: Event definitions
- state.py: AssetStore, SelectionState, MachineContext, MachineState
- guards.py: Guard predicates
- actions.py: Input builders and reconciliation actions
- import_dialog.py: Import dialog sub-machine
- transitions.py: Transition table and pure transition function
- fsm_machine.py: TreeMachine asyncio runtime
"""

from .fsm_events import Event, EventType
from .phases import DialogState, Tag, TreeState
from .state import AssetStore, MachineContext, MachineState, SelectionState
from .transitions import can, initial_transition, transition

__all__ = [
    'Event',
    'EventType',
    'TreeState',
    'DialogState',
    'Tag',
    'AssetStore',
    'SelectionState',
    'MachineContext',
    'MachineState',
    'can',
    'initial_transition',
    'transition',
]
