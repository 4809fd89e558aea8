"""
Pytest fixtures for truthdare tests.
"""

import random
from typing import List

import orjson
import pytest

from truthdare.core.catalog import ContentCatalog
from truthdare.core.engine import DrawEngine
from truthdare.core.session import Session
from truthdare.core.sources import MemorySource
from truthdare.core.store import MemoryKeyValueStore, SessionStore

DAY = 24 * 60 * 60

CATALOG = [
    {"id": 1, "name": "Alpha", "description": "Tiny pack", "truth": "alpha/truth.txt", "dare": "alpha/dare.txt"},
    {"id": 2, "name": "Bravo", "description": "Medium pack", "truth": "bravo/truth.txt", "dare": "bravo/dare.txt"},
    {"id": 3, "name": "Charlie", "description": "No dares", "truth": "charlie/truth.txt", "dare": "charlie/dare.txt"},
    {"id": 4, "name": "Broken", "description": "Missing files", "truth": "broken/truth.txt", "dare": "broken/dare.txt"},
]

RESOURCES = {
    "card_mapping.json": orjson.dumps(CATALOG).decode(),
    "alpha/truth.txt": "t1\n\n  t2  \n",
    "alpha/dare.txt": "d1\n",
    "bravo/truth.txt": "b-t1\nb-t2\nb-t3\n",
    "bravo/dare.txt": "b-d1\nb-d2\nb-d3\n",
    "charlie/truth.txt": "c-t1\n",
    "charlie/dare.txt": "\n  \n",
}


class FakeClock:
    """Controllable replacement for ``time.time``."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, *, days: float = 0, seconds: float = 0) -> None:
        self.now += days * DAY + seconds


class RecordingStore(SessionStore):
    """Session store that remembers the round of every save."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.saved_rounds: List[int] = []

    @property
    def save_count(self) -> int:
        return len(self.saved_rounds)

    def save(self, session: Session) -> bool:
        self.saved_rounds.append(session.current_round)
        return super().save(session)


class FixedRoll(random.Random):
    """Random generator whose ``random()`` always returns ``roll``.

    Shuffles still use the seeded generator underneath.
    """

    def __init__(self, roll: float = 0.0, seed: int = 0) -> None:
        super().__init__(seed)
        self.roll = roll

    def random(self) -> float:
        return self.roll

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


@pytest.fixture
def source() -> MemorySource:
    return MemorySource(RESOURCES)


@pytest.fixture
def catalog(source: MemorySource) -> ContentCatalog:
    return ContentCatalog.load(source)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def store(backend: MemoryKeyValueStore, clock: FakeClock) -> RecordingStore:
    return RecordingStore(backend, clock=clock)


@pytest.fixture
def engine(catalog: ContentCatalog, source: MemorySource, store: RecordingStore) -> DrawEngine:
    return DrawEngine(catalog, source, store, rng=random.Random(7))


@pytest.fixture
def make_engine(catalog: ContentCatalog, source: MemorySource, store: RecordingStore):
    """Build further engines sharing the same catalog, source and store."""

    def _make(rng: random.Random | None = None, **kwargs) -> DrawEngine:
        return DrawEngine(catalog, source, store, rng=rng or random.Random(11), **kwargs)

    return _make
