"""
Shared fixtures for tree editor tests.

ControlledBackend lets a test decide when (and how) each backend call
settles, so in-flight behaviour can be observed step by step.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, List, Optional

import pytest

from tree_editor.fsm.exceptions import BackendError
from tree_editor.operations import AssetBackend


@dataclass
class Call:
    operation: str
    payload: Any
    future: asyncio.Future


class ControlledBackend(AssetBackend):
    """Backend whose calls block until resolve() or fail() is called."""

    def __init__(self):
        self.calls: List[Call] = []

    def _call(self, operation: str, payload: Any = None) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(Call(operation, payload, future))
        return future

    async def fetch_assets(self):
        return await self._call("fetch_assets")

    async def delete_asset(self, payload):
        return await self._call("delete_asset", payload)

    async def add_asset(self, payload):
        return await self._call("add_asset", payload)

    async def replace_asset(self, payload):
        return await self._call("replace_asset", payload)

    async def import_assets(self):
        return await self._call("import_assets")

    # ----- test controls -----

    def pending(self, operation: Optional[str] = None) -> List[Call]:
        return [
            c for c in self.calls
            if not c.future.done() and (operation is None or c.operation == operation)
        ]

    def last(self, operation: Optional[str] = None) -> Call:
        calls = [c for c in self.calls if operation is None or c.operation == operation]
        return calls[-1]

    def resolve(self, operation: str, value: Any = None) -> None:
        """Settle the oldest pending call of operation successfully."""
        self.pending(operation)[0].future.set_result(value)

    def fail(self, operation: str, error: Optional[BaseException] = None) -> None:
        self.pending(operation)[0].future.set_exception(error or BackendError(f"{operation} failed"))


async def drain(rounds: int = 10) -> None:
    """Let spawned operation tasks run until they are blocked again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def controlled_backend():
    return ControlledBackend()


@pytest.fixture
def flush():
    return drain
