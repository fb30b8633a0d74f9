#!/usr/bin/env python3
"""
Asset Models - Pydantic records for the tree editor

Asset records are immutable: updates replace a record wholesale.
Operation inputs/outputs are modeled here as well so that backend
payloads get validated at the boundary, before they reach the FSM.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict


class AssetType(str, Enum):
    """Kind of asset shown in the tree."""
    TREE = "TREE"
    FUND = "FUND"
    STRATEGY = "STRATEGY"


class Asset(BaseModel):
    """
    One asset record.

    Fields:
        id: Unique within the asset store
        code: Asset code shown in the first table column
        type: TREE, FUND or STRATEGY
        name: Display name
        weight: Strategic weight as a display value (e.g. "20%")
    """
    model_config = ConfigDict(frozen=True)

    id: str
    code: str
    type: AssetType
    name: str
    weight: str


# =============================================================================
# OPERATION INPUTS
# =============================================================================

class DeleteAssetInput(BaseModel):
    """Input of delete-one: the asset selected when the delete started."""
    model_config = ConfigDict(frozen=True)

    asset_id: str


class AddAssetInput(BaseModel):
    """Input of add-one: the fund selected when the add started."""
    model_config = ConfigDict(frozen=True)

    fund_id: str


class ReplaceAssetInput(BaseModel):
    """Input of replace-one."""
    model_config = ConfigDict(frozen=True)

    old_asset_id: str
    new_fund_id: str


# =============================================================================
# OPERATION OUTPUTS
# =============================================================================

class AssetsOutput(BaseModel):
    """Output of fetch-all and import-many."""
    model_config = ConfigDict(frozen=True)

    assets: List[Asset]
