"""
FSM State Management

AssetStore: ordered, immutable collection of assets
SelectionState: selected asset and selected fund (independent axes)
MachineContext: (AssetStore, SelectionState), the data the FSM owns
MachineState: where the machine is (root state, dialog state, invocation)

All four are values. Transitions return new instances instead of
mutating existing ones, so a snapshot handed to a collaborator never
changes under its feet.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from tree_editor.logger_factory import log_event
from tree_editor.models import Asset

from .effects import Invocation
from .phases import (
    SYNCHRONIZING_DIALOG_STATES,
    SYNCHRONIZING_STATES,
    DialogState,
    Tag,
    TreeState,
)

logger = logging.getLogger(__name__)


class AssetStore:
    """
    Ordered sequence of assets plus derived lookups.

    Order is display order only. Appending does not deduplicate against
    existing ids; a collision is logged, not prevented.
    """

    __slots__ = ("_assets",)

    def __init__(self, assets: Iterable[Asset] = ()):
        self._assets: Tuple[Asset, ...] = tuple(assets)

    @property
    def assets(self) -> Tuple[Asset, ...]:
        return self._assets

    def ids(self) -> List[str]:
        return [asset.id for asset in self._assets]

    def get(self, asset_id: str) -> Optional[Asset]:
        for asset in self._assets:
            if asset.id == asset_id:
                return asset
        return None

    def duplicate_ids(self) -> Set[str]:
        counts = Counter(asset.id for asset in self._assets)
        return {asset_id for asset_id, n in counts.items() if n > 1}

    def without(self, asset_id: str) -> "AssetStore":
        """Store with every record whose id equals asset_id removed."""
        return AssetStore(a for a in self._assets if a.id != asset_id)

    def appended(self, *assets: Asset) -> "AssetStore":
        existing = set(self.ids())
        for asset in assets:
            if asset.id in existing:
                log_event(
                    logger,
                    "asset_store_duplicate_id",
                    message=f"Appending asset with existing id {asset.id!r}",
                    level=logging.WARNING,
                    asset_id=asset.id,
                )
            existing.add(asset.id)
        return AssetStore(self._assets + tuple(assets))

    def __iter__(self) -> Iterator[Asset]:
        return iter(self._assets)

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, asset_id: object) -> bool:
        return any(a.id == asset_id for a in self._assets)

    def __eq__(self, other):
        if not isinstance(other, AssetStore):
            return NotImplemented
        return self._assets == other._assets

    def __hash__(self):
        return hash(self._assets)

    def __repr__(self):
        return f"AssetStore({self.ids()})"


@dataclass(frozen=True)
class SelectionState:
    """Currently selected fund and asset. Either may be unset (None)."""

    selected_fund_id: Optional[str] = None
    selected_asset_id: Optional[str] = None

    def with_fund(self, fund_id: Optional[str]) -> "SelectionState":
        return replace(self, selected_fund_id=fund_id)

    def with_asset(self, asset_id: Optional[str]) -> "SelectionState":
        return replace(self, selected_asset_id=asset_id)

    def cleared(self) -> "SelectionState":
        return SelectionState()


@dataclass(frozen=True)
class MachineContext:
    """
    The only data the FSM owns.

    Created empty at machine start; replaced by transition actions.
    """

    store: AssetStore = field(default_factory=AssetStore)
    selection: SelectionState = field(default_factory=SelectionState)

    @property
    def assets(self) -> Tuple[Asset, ...]:
        return self.store.assets

    @property
    def selected_fund_id(self) -> Optional[str]:
        return self.selection.selected_fund_id

    @property
    def selected_asset_id(self) -> Optional[str]:
        return self.selection.selected_asset_id

    def with_store(self, store: AssetStore) -> "MachineContext":
        return replace(self, store=store)

    def with_selection(self, selection: SelectionState) -> "MachineContext":
        return replace(self, selection=selection)


@dataclass(frozen=True)
class MachineState:
    """
    Position of the machine.

    dialog is set only while value is IMPORT_DIALOG_OPEN.
    invocation is the operation whose result the machine is waiting for.
    invocation_seq numbers invocations so stale results can be told apart.
    """

    value: TreeState = TreeState.LOADING_INITIAL
    dialog: Optional[DialogState] = None
    invocation: Optional[Invocation] = None
    invocation_seq: int = 0

    @property
    def path(self) -> str:
        """Dotted state path, e.g. "import_dialog_open.importing"."""
        if self.dialog is not None:
            return f"{self.value.value}.{self.dialog.value}"
        return self.value.value

    @property
    def tags(self) -> FrozenSet[Tag]:
        if self.value in SYNCHRONIZING_STATES or self.dialog in SYNCHRONIZING_DIALOG_STATES:
            return frozenset({Tag.SYNCHRONIZING})
        return frozenset()

    def has_tag(self, tag) -> bool:
        return Tag(tag) in self.tags

    def matches(self, path) -> bool:
        """
        True if path names the current state or one of its ancestors.

        Accepts a TreeState or a dotted string ("import_dialog_open",
        "import_dialog_open.importing").
        """
        if isinstance(path, TreeState):
            path = path.value
        current = self.path
        return current == path or current.startswith(f"{path}.")

    def __str__(self):
        return self.path
