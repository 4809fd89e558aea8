"""Pydantic contracts for everything written to the persistent store."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class Category(str, Enum):
    """Prompt categories."""

    TRUTH = "truth"
    DARE = "dare"


class PackageState(BaseModel):
    """Saved draw progress of one package."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    truth_index: int = Field(0, alias="truthIndex", ge=0)
    dare_index: int = Field(0, alias="dareIndex", ge=0)
    truth_cards: List[str] = Field(default_factory=list, alias="truthCards")
    dare_cards: List[str] = Field(default_factory=list, alias="dareCards")

    @model_validator(mode="after")
    def _cursors_in_range(self) -> "PackageState":
        if self.truth_index > len(self.truth_cards):
            raise ValueError(f"truthIndex {self.truth_index} beyond {len(self.truth_cards)} cards")
        if self.dare_index > len(self.dare_cards):
            raise ValueError(f"dareIndex {self.dare_index} beyond {len(self.dare_cards)} cards")
        return self


class SessionSnapshot(BaseModel):
    """Full persisted game, written after every state change."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: int = Field(..., description="Save time in epoch milliseconds")
    current_round: int = Field(1, alias="currentRound", ge=1)
    last_used_package_id: Optional[int] = Field(None, alias="lastUsedPackageId")
    last_card_type: Optional[Category] = Field(None, alias="lastCardType")
    selected_package_ids: List[int] = Field(default_factory=list, alias="selectedPackageIds")
    package_states: List[PackageState] = Field(default_factory=list, alias="packageStates")

    def package_state(self, package_id: int) -> Optional[PackageState]:
        for state in self.package_states:
            if state.id == package_id:
                return state
        return None


class Settings(BaseModel):
    """Front-end preferences kept alongside the session."""

    model_config = ConfigDict(populate_by_name=True)

    dark_mode: bool = Field(False, alias="darkMode")
    selected_package_ids: List[int] = Field(default_factory=list, alias="selectedPackageIds")


class SnapshotDecodeError(ValueError):
    """Raised when stored bytes do not decode to a valid model."""


def encode_model(model: BaseModel) -> bytes:
    """Serialize a model with its camelCase aliases."""
    return orjson.dumps(model.model_dump(mode="json", by_alias=True))


def decode_snapshot(data: bytes) -> SessionSnapshot:
    try:
        return SessionSnapshot.model_validate(orjson.loads(data))
    except (orjson.JSONDecodeError, ValidationError) as exc:
        raise SnapshotDecodeError(str(exc)) from exc


def decode_settings(data: bytes) -> Settings:
    try:
        return Settings.model_validate(orjson.loads(data))
    except (orjson.JSONDecodeError, ValidationError) as exc:
        raise SnapshotDecodeError(str(exc)) from exc
