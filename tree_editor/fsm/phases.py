"""
State Definitions for the Tree Editor FSM

Root states (TreeState) and the nested import dialog states (DialogState).
Tags label states so collaborators can disable input without knowing
state names.
"""

from enum import Enum


class TreeState(str, Enum):
    """
    Root machine states

    Lifecycle Flow:
    LOADING_INITIAL → IDLE ⇄ {DELETING_ASSET, ADDING_ASSET, REPLACING_ASSET}
    IDLE ⇄ IMPORT_DIALOG_OPEN (composite, see DialogState)
    """

    LOADING_INITIAL = "loading_initial"
    """
    Initial state. Invokes fetch-all.
    Next: IDLE (on success or failure)
    """

    IDLE = "idle"
    """
    Waiting for user actions. The only state where operations can start.
    """

    DELETING_ASSET = "deleting_asset"
    """
    Invokes delete-one with the asset selected on entry.
    Next: IDLE
    """

    ADDING_ASSET = "adding_asset"
    """
    Invokes add-one with the fund selected on entry.
    Next: IDLE
    """

    REPLACING_ASSET = "replacing_asset"
    """
    Invokes replace-one with the asset and fund selected on entry.
    Next: IDLE
    """

    IMPORT_DIALOG_OPEN = "import_dialog_open"
    """
    Composite state hosting the import dialog sub-machine.
    Next: IDLE (on close, or when the dialog reaches DONE)
    """


class DialogState(str, Enum):
    """Import dialog sub-machine states"""

    IDLE = "idle"
    IMPORTING = "importing"
    DONE = "done"


class Tag(str, Enum):
    """State tags"""

    SYNCHRONIZING = "Synchronizing"


# Tag assignment
SYNCHRONIZING_STATES = {
    TreeState.LOADING_INITIAL,
    TreeState.DELETING_ASSET,
    TreeState.ADDING_ASSET,
    TreeState.REPLACING_ASSET,
}
SYNCHRONIZING_DIALOG_STATES = {DialogState.IMPORTING}

FINAL_DIALOG_STATES = {DialogState.DONE}
