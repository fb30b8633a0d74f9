"""
Effects returned by the transition function.

The transition function never performs I/O. It returns effects which
the runtime executes: starting an operation, or abandoning one whose
result must no longer be applied.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel


class OperationKind(str, Enum):
    """The five asynchronous backend operations."""
    FETCH_ASSETS = "fetch_assets"
    DELETE_ASSET = "delete_asset"
    ADD_ASSET = "add_asset"
    REPLACE_ASSET = "replace_asset"
    IMPORT_ASSETS = "import_assets"


@dataclass(frozen=True)
class Invocation:
    """
    One operation call.

    input is the snapshot taken when the invoking state was entered;
    it never changes afterwards.
    """
    id: int
    kind: OperationKind
    input: Optional[BaseModel] = None


@dataclass(frozen=True)
class InvokeOperation:
    invocation: Invocation


@dataclass(frozen=True)
class AbandonOperation:
    """The invocation's result, if it ever arrives, must be dropped."""
    invocation: Invocation


Effect = Union[InvokeOperation, AbandonOperation]
