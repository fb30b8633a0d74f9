#!/usr/bin/env python3
"""
Asynchronous backend operations

AssetBackend is the contract the machine depends on: five coroutines,
each of which eventually returns an output or raises. The machine never
retries and never times out an operation; any exception is the single
modeled failure.

SimulatedBackend stands in for the real service: random latency, an
"empty dataset" switch and an injectable failure rate.
"""

import asyncio
import itertools
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from tree_editor import config
from tree_editor.fsm.effects import Invocation, OperationKind
from tree_editor.fsm.exceptions import BackendError
from tree_editor.models import (
    AddAssetInput,
    Asset,
    AssetsOutput,
    AssetType,
    DeleteAssetInput,
    ReplaceAssetInput,
)

logger = logging.getLogger(__name__)


class AssetBackend(ABC):
    """Backend contract. Outputs may be models or plain dicts."""

    @abstractmethod
    async def fetch_assets(self) -> Any:
        """fetch-all → {"assets": [...]}"""

    @abstractmethod
    async def delete_asset(self, payload: DeleteAssetInput) -> None:
        """delete-one → nothing"""

    @abstractmethod
    async def add_asset(self, payload: AddAssetInput) -> Any:
        """add-one → the created asset, its id derived from payload.fund_id"""

    @abstractmethod
    async def replace_asset(self, payload: ReplaceAssetInput) -> Any:
        """replace-one → the asset superseding payload.old_asset_id"""

    @abstractmethod
    async def import_assets(self) -> Any:
        """import-many → {"assets": [...]}"""


def coerce_output(kind: OperationKind, raw: Any) -> Any:
    """
    Validate a backend's raw output into the operation's output model.

    Raises:
        pydantic.ValidationError: If the payload does not match
    """
    if kind in (OperationKind.FETCH_ASSETS, OperationKind.IMPORT_ASSETS):
        return AssetsOutput.model_validate(raw)
    if kind in (OperationKind.ADD_ASSET, OperationKind.REPLACE_ASSET):
        return Asset.model_validate(raw)
    return None


async def run_operation(backend: AssetBackend, invocation: Invocation) -> Any:
    """Dispatch an invocation to the backend and validate its output."""
    kind = invocation.kind
    if kind == OperationKind.FETCH_ASSETS:
        raw = await backend.fetch_assets()
    elif kind == OperationKind.DELETE_ASSET:
        raw = await backend.delete_asset(invocation.input)
    elif kind == OperationKind.ADD_ASSET:
        raw = await backend.add_asset(invocation.input)
    elif kind == OperationKind.REPLACE_ASSET:
        raw = await backend.replace_asset(invocation.input)
    elif kind == OperationKind.IMPORT_ASSETS:
        raw = await backend.import_assets()
    else:
        raise ValueError(f"Unknown operation: {kind}")
    return coerce_output(kind, raw)


# =============================================================================
# SIMULATED BACKEND
# =============================================================================

SEED_ASSETS: List[Asset] = [
    Asset(id="1", code="123aq1", type=AssetType.TREE, name="Tree A", weight="10%"),
    Asset(id="2", code="456aq2", type=AssetType.STRATEGY, name="Strategy B", weight="20%"),
    Asset(id="3", code="789aq3", type=AssetType.FUND, name="Fund C", weight="30%"),
    Asset(id="4", code="101aq4", type=AssetType.FUND, name="Fund D", weight="70%"),
]


class SimulatedBackend(AssetBackend):
    """
    In-memory backend with random latency.

    Args:
        latency_max_s: Each call sleeps uniformly in [0, latency_max_s)
        failure_rate: Probability that a call raises BackendError
        empty: fetch_assets returns no assets
        rng: Random source (seed it for reproducible runs)
    """

    def __init__(
        self,
        latency_max_s: Optional[float] = None,
        failure_rate: Optional[float] = None,
        empty: Optional[bool] = None,
        rng: Optional[random.Random] = None,
    ):
        self.latency_max_s = config.OPERATION_LATENCY_MAX_S if latency_max_s is None else latency_max_s
        self.failure_rate = config.SIMULATED_FAILURE_RATE if failure_rate is None else failure_rate
        self.empty = config.EMPTY_ASSETS if empty is None else empty
        self._rng = rng or random.Random()
        self._import_counter = itertools.count(1)

    async def _simulate(self, operation: str) -> None:
        await asyncio.sleep(self._rng.random() * self.latency_max_s)
        if self.failure_rate and self._rng.random() < self.failure_rate:
            raise BackendError(f"Simulated failure in {operation}")

    async def fetch_assets(self) -> AssetsOutput:
        await self._simulate("fetch_assets")
        if self.empty:
            return AssetsOutput(assets=[])
        return AssetsOutput(assets=list(SEED_ASSETS))

    async def delete_asset(self, payload: DeleteAssetInput) -> None:
        logger.info(f"Deleting asset {payload.asset_id}")
        await self._simulate("delete_asset")

    async def add_asset(self, payload: AddAssetInput) -> Asset:
        logger.info(f"Adding asset {payload.fund_id}")
        await self._simulate("add_asset")
        return self._fund_asset(payload.fund_id)

    async def replace_asset(self, payload: ReplaceAssetInput) -> Asset:
        logger.info(f"Replacing asset {payload.old_asset_id} with {payload.new_fund_id}")
        await self._simulate("replace_asset")
        return self._fund_asset(payload.new_fund_id)

    async def import_assets(self) -> AssetsOutput:
        logger.info("Importing assets")
        await self._simulate("import_assets")
        batch = next(self._import_counter)
        return AssetsOutput(assets=[
            Asset(
                id=f"import-{batch}-1",
                code=f"imp{batch:03d}s",
                type=AssetType.STRATEGY,
                name=f"Imported Strategy {batch}",
                weight="15%",
            ),
            Asset(
                id=f"import-{batch}-2",
                code=f"imp{batch:03d}f",
                type=AssetType.FUND,
                name=f"Imported Fund {batch}",
                weight="5%",
            ),
        ])

    @staticmethod
    def _fund_asset(fund_id: str) -> Asset:
        return Asset(id=fund_id, code="new-code", type=AssetType.FUND, name=fund_id, weight="50%")
