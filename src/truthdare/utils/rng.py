"""Seeded randomness helpers for reproducible draws."""

import random
from typing import MutableSequence, TypeVar

T = TypeVar("T")


def build_rng(*, seed: int | None = None) -> random.Random:
    """Return a random generator, deterministic when a seed is given."""
    return random.Random(seed)


def shuffle_in_place(rng: random.Random, items: MutableSequence[T]) -> None:
    """Fisher-Yates shuffle of ``items``.

    Walks from the last index down to 1 and swaps each position with a
    uniformly chosen index in ``[0, i]``.

    Args:
        rng: Random number generator
        items: Sequence to permute in place
    """
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]

