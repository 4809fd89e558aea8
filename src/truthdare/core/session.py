"""Mutable game state owned by a single engine instance."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .deck import PackageDeck
from .errors import InconsistentSession
from .schemas import Category, SessionSnapshot


@dataclass(frozen=True, slots=True)
class LastDraw:
    """Package and category of the most recent draw, used by pass."""

    package_id: int
    category: Category


@dataclass
class Session:
    """Round counter, last draw and the active decks keyed by package id."""

    current_round: int = 1
    last_draw: Optional[LastDraw] = None
    decks: Dict[int, PackageDeck] = field(default_factory=dict)

    @property
    def package_ids(self) -> List[int]:
        return list(self.decks)

    def active_decks(self) -> List[PackageDeck]:
        return list(self.decks.values())

    def last_deck(self) -> Optional[PackageDeck]:
        if self.last_draw is None:
            return None
        return self.decks.get(self.last_draw.package_id)

    def check_invariants(self) -> None:
        if self.current_round < 1:
            raise InconsistentSession(f"round {self.current_round} is below 1")
        if self.last_draw is not None and self.last_draw.package_id not in self.decks:
            raise InconsistentSession(f"last draw points at inactive package {self.last_draw.package_id}")

    def to_snapshot(self, timestamp_ms: int) -> SessionSnapshot:
        return SessionSnapshot(
            timestamp=timestamp_ms,
            current_round=self.current_round,
            last_used_package_id=self.last_draw.package_id if self.last_draw else None,
            last_card_type=self.last_draw.category if self.last_draw else None,
            selected_package_ids=self.package_ids,
            package_states=[deck.to_state() for deck in self.decks.values()],
        )
