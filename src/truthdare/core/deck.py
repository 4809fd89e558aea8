"""Per-package draw state."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List

import structlog

from ..utils.rng import shuffle_in_place
from .catalog import PackageDescriptor
from .errors import ResourceLoadError
from .schemas import Category, PackageState
from .sources import PromptSource, parse_prompts

LOGGER = structlog.get_logger(__name__)


@dataclass
class PackageDeck:
    """Two independently shuffled prompt queues with consumption cursors.

    Cards before a cursor are consumed, cards at or after it are available.
    """

    id: int
    name: str = ""
    truth_cards: List[str] = field(default_factory=list)
    dare_cards: List[str] = field(default_factory=list)
    truth_index: int = 0
    dare_index: int = 0

    @classmethod
    def for_descriptor(cls, descriptor: PackageDescriptor) -> "PackageDeck":
        return cls(id=descriptor.id, name=descriptor.name)

    def cards(self, category: Category) -> List[str]:
        return self.truth_cards if Category(category) is Category.TRUTH else self.dare_cards

    def index(self, category: Category) -> int:
        return self.truth_index if Category(category) is Category.TRUTH else self.dare_index

    def _set_index(self, category: Category, value: int) -> None:
        if Category(category) is Category.TRUTH:
            self.truth_index = value
        else:
            self.dare_index = value

    def populate_fresh(self, source: PromptSource, descriptor: PackageDescriptor, rng: random.Random) -> None:
        """Load both prompt resources, shuffle them and reset the cursors.

        Both resources are fetched before anything is assigned, so a failure
        leaves the deck exactly as it was.

        Raises:
            ResourceLoadError: either resource could not be read.
        """
        texts = {}
        for category, path in ((Category.TRUTH, descriptor.truth_source), (Category.DARE, descriptor.dare_source)):
            try:
                texts[category] = source.read_text(path)
            except OSError as exc:
                LOGGER.warning("deck.load_failed", package=descriptor.id, path=path, error=str(exc))
                raise ResourceLoadError(descriptor.id, path, str(exc)) from exc

        truth_cards = parse_prompts(texts[Category.TRUTH])
        dare_cards = parse_prompts(texts[Category.DARE])
        shuffle_in_place(rng, truth_cards)
        shuffle_in_place(rng, dare_cards)

        self.name = descriptor.name
        self.truth_cards = truth_cards
        self.dare_cards = dare_cards
        self.truth_index = 0
        self.dare_index = 0
        LOGGER.info("deck.loaded", package=self.id, truth=len(truth_cards), dare=len(dare_cards))

    def restore(self, state: PackageState) -> None:
        """Rehydrate cards and cursors from a saved state, keeping its order."""
        self.truth_cards = list(state.truth_cards)
        self.dare_cards = list(state.dare_cards)
        self.truth_index = state.truth_index
        self.dare_index = state.dare_index

    def remaining_count(self, category: Category) -> int:
        return len(self.cards(category)) - self.index(category)

    def total_count(self, category: Category) -> int:
        return len(self.cards(category))

    def consume_next(self, category: Category) -> str:
        """Return the next available card and advance the cursor."""
        if self.remaining_count(category) <= 0:
            raise IndexError(f"Package {self.id} has no {Category(category).value} cards left")
        position = self.index(category)
        card = self.cards(category)[position]
        self._set_index(category, position + 1)
        return card

    def reshuffle(self, category: Category, rng: random.Random) -> None:
        """Reset the cursor and reshuffle one category in place."""
        self._set_index(category, 0)
        shuffle_in_place(rng, self.cards(category))
        LOGGER.debug("deck.reshuffled", package=self.id, category=Category(category).value)

    def to_state(self) -> PackageState:
        return PackageState(
            id=self.id,
            truth_index=self.truth_index,
            dare_index=self.dare_index,
            truth_cards=list(self.truth_cards),
            dare_cards=list(self.dare_cards),
        )
