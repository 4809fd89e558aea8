"""Draw engine: weighted draws without replacement, pass and session lifecycle."""

from __future__ import annotations

import random
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Iterable, List, Optional, Sequence

import structlog

from ..utils.rng import build_rng
from .catalog import ContentCatalog
from .deck import PackageDeck
from .errors import (
    EmptyCategoryAcrossSelection,
    EmptySelection,
    NoActiveSession,
    NoPriorDraw,
    Notice,
    NoticeKind,
    ResourceLoadError,
)
from .reconciler import ReconcileReport, SessionReconciler
from .schemas import Category, SessionSnapshot
from .session import LastDraw, Session
from .sources import PromptSource
from .store import SessionStore

LOGGER = structlog.get_logger(__name__)

CATEGORY_LABELS = {Category.TRUTH: "Truth", Category.DARE: "Dare"}

NoticeListener = Callable[[Notice], None]

NOTICE_HISTORY = 50


@dataclass(frozen=True, slots=True)
class DrawResult:
    """A drawn card as handed to the presentation layer."""

    card: str
    package_id: int
    package_name: str
    category: Category
    round: int
    is_pass: bool = False


def pick_weighted(rng: random.Random, decks: Sequence[PackageDeck], category: Category) -> PackageDeck:
    """Choose a deck with probability proportional to its remaining cards.

    Every remaining card is equally likely to be next, so packages with more
    cards left are picked more often.
    """
    if not decks:
        raise ValueError("pick_weighted needs at least one deck")
    total = sum(deck.remaining_count(category) for deck in decks)
    roll = rng.random() * total
    for deck in decks:
        roll -= deck.remaining_count(category)
        if roll <= 0:
            return deck
    return decks[-1]


class DrawEngine:
    """Owns one game session and every operation that mutates it.

    Each mutating operation saves the session through the store before it
    returns. Public operations never raise the game error taxonomy; they turn
    failures into :class:`Notice` entries and return ``None`` or ``False``.
    """

    def __init__(
        self,
        catalog: ContentCatalog,
        source: PromptSource,
        store: SessionStore,
        *,
        rng: Optional[random.Random] = None,
        listener: Optional[NoticeListener] = None,
    ) -> None:
        self.catalog = catalog
        self.source = source
        self.store = store
        self.rng = rng or build_rng()
        self.session: Optional[Session] = None
        self.notices: Deque[Notice] = deque(maxlen=NOTICE_HISTORY)
        self._listener = listener
        self._lock = threading.RLock()
        self._reconciler = SessionReconciler(catalog, source, self.rng)

    @property
    def in_game(self) -> bool:
        return self.session is not None

    # ------------------------------------------------------------------
    # Notices and persistence
    # ------------------------------------------------------------------

    def _notify(self, kind: NoticeKind, message: str, *, package_id: Optional[int] = None) -> Notice:
        notice = Notice(kind=kind, message=message, package_id=package_id)
        self.notices.append(notice)
        LOGGER.debug("notice.emitted", kind=kind.value, notice=message)
        if self._listener is not None:
            self._listener(notice)
        return notice

    def _notify_load_failed(self, exc: ResourceLoadError) -> None:
        descriptor = self.catalog.find(exc.package_id)
        name = descriptor.name if descriptor else str(exc.package_id)
        self._notify(NoticeKind.LOAD_FAILED, f"Could not load the cards of {name}.", package_id=exc.package_id)

    def _persist(self) -> None:
        if self.session is not None:
            self.store.save(self.session)

    def _require_session(self) -> Session:
        if self.session is None:
            raise NoActiveSession("No game is running")
        return self.session

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def saved_session(self) -> Optional[SessionSnapshot]:
        """Peek at the persisted game, e.g. to offer continuing it."""
        return self.store.load()

    def start_session(self, package_ids: Iterable[int]) -> bool:
        """Start a brand new game with freshly shuffled decks.

        Packages that fail to load are skipped with a notice. The saved game
        is replaced only when at least one package loaded; otherwise the
        running and saved games are left as they were and ``False`` is
        returned.
        """
        selected = list(dict.fromkeys(int(package_id) for package_id in package_ids))
        with self._lock:
            if not selected:
                self._notify(NoticeKind.EMPTY_SELECTION, "Please select at least one package!")
                return False

            session = Session()
            for package_id in selected:
                descriptor = self.catalog.find(package_id)
                if descriptor is None:
                    LOGGER.warning("session.unknown_package", package=package_id)
                    continue
                deck = PackageDeck.for_descriptor(descriptor)
                try:
                    deck.populate_fresh(self.source, descriptor, self.rng)
                except ResourceLoadError as exc:
                    self._notify_load_failed(exc)
                    continue
                session.decks[package_id] = deck

            if not session.decks:
                LOGGER.warning("session.start_failed", packages=selected)
                return False

            self.store.clear()
            self.session = session
            self._persist()
            LOGGER.info("session.started", packages=session.package_ids)
            self._notify(NoticeKind.SESSION_STARTED, "Starting a new game...")
            return True

    def resume_session(self) -> bool:
        """Rebuild the session exactly as it was last saved."""
        with self._lock:
            snapshot = self.store.load()
            if snapshot is None:
                self._notify(NoticeKind.RESUME_FAILED, "Could not load the saved game.")
                return False

            session = Session(current_round=snapshot.current_round)
            dropped = []
            for state in snapshot.package_states:
                descriptor = self.catalog.find(state.id)
                if descriptor is None:
                    dropped.append(state.id)
                    continue
                deck = PackageDeck.for_descriptor(descriptor)
                deck.restore(state)
                session.decks[state.id] = deck

            if snapshot.last_card_type is not None and snapshot.last_used_package_id in session.decks:
                session.last_draw = LastDraw(snapshot.last_used_package_id, snapshot.last_card_type)
            session.check_invariants()

            self.session = session
            if dropped:
                LOGGER.warning("session.packages_dropped", packages=dropped)
                self._persist()
            LOGGER.info("session.resumed", round=session.current_round, packages=session.package_ids)
            self._notify(NoticeKind.SESSION_RESUMED, f"Continuing the game from round {session.current_round}...")
            return True

    def reconcile(self, package_ids: Iterable[int]) -> Optional[ReconcileReport]:
        """Continue the running game with a changed package selection."""
        with self._lock:
            try:
                session = self._require_session()
                report = self._reconciler.reconcile(session, package_ids, self.store.load())
            except NoActiveSession:
                self._notify(NoticeKind.NO_SESSION, "Start a game first.")
                return None
            except EmptySelection:
                self._notify(NoticeKind.EMPTY_SELECTION, "Please select at least one package!")
                return None

            if report.pass_cleared:
                self._notify(
                    NoticeKind.PACKAGE_REMOVED,
                    "The last used package was removed. Pass is not available.",
                    package_id=report.removed_last_package,
                )
            for exc in report.failed:
                self._notify_load_failed(exc)
            session.check_invariants()
            self._persist()
            self._notify(NoticeKind.SESSION_CHANGED, "Continuing the game with the changed packages...")
            return report

    def abandon(self) -> None:
        """Forget the running game and its saved copy."""
        with self._lock:
            self.store.clear()
            self.session = None
            LOGGER.info("session.abandoned")

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def draw(self, category: Category | str) -> Optional[DrawResult]:
        """Draw the next card of ``category`` from a weighted random package."""
        category = Category(category)
        with self._lock:
            try:
                return self._draw(category)
            except NoActiveSession:
                self._notify(NoticeKind.NO_SESSION, "Start a game first.")
            except EmptyCategoryAcrossSelection:
                self._notify(
                    NoticeKind.EMPTY_CATEGORY,
                    f"None of the selected packages has {CATEGORY_LABELS[category]} cards.",
                )
            return None

    def pass_card(self) -> Optional[DrawResult]:
        """Replace the last card with another from the same package and category.

        The round counter does not move. When that package has no cards left
        in the category, a regular draw is made instead.
        """
        with self._lock:
            try:
                session = self._require_session()
                last = session.last_draw
                if last is None:
                    raise NoPriorDraw("Nothing has been drawn yet")
                deck = session.last_deck()
                assert deck is not None
                if deck.remaining_count(last.category) > 0:
                    card = deck.consume_next(last.category)
                    self._persist()
                    LOGGER.info("draw.passed", package=deck.id, category=last.category.value, round=session.current_round)
                    return DrawResult(card, deck.id, deck.name, last.category, session.current_round, is_pass=True)

                self._notify(
                    NoticeKind.PASS_FALLBACK,
                    f"No more {CATEGORY_LABELS[last.category]} cards in {deck.name}; drawing from another package.",
                    package_id=deck.id,
                )
                return self._draw(last.category)
            except NoActiveSession:
                self._notify(NoticeKind.NO_SESSION, "Start a game first.")
            except NoPriorDraw:
                self._notify(NoticeKind.PASS_UNAVAILABLE, "Draw a card first!")
            except EmptyCategoryAcrossSelection as exc:
                label = CATEGORY_LABELS[Category(exc.category)]
                self._notify(NoticeKind.EMPTY_CATEGORY, f"None of the selected packages has {label} cards.")
            return None

    @staticmethod
    def _available(session: Session, category: Category) -> List[PackageDeck]:
        return [deck for deck in session.active_decks() if deck.remaining_count(category) > 0]

    def _reshuffle_category(self, session: Session, category: Category) -> None:
        for deck in session.active_decks():
            deck.reshuffle(category, self.rng)
        LOGGER.info("draw.reshuffled", category=category.value, packages=session.package_ids)
        self._notify(NoticeKind.CATEGORY_EXHAUSTED, f"All {CATEGORY_LABELS[category]} cards played! Reshuffling...")
        self._persist()

    def _draw(self, category: Category) -> DrawResult:
        session = self._require_session()
        log = LOGGER.bind(category=category.value)
        available = self._available(session, category)
        if not available:
            if not any(deck.total_count(category) for deck in session.active_decks()):
                log.warning("draw.empty_category", packages=session.package_ids)
                raise EmptyCategoryAcrossSelection(category.value)
            self._reshuffle_category(session, category)
            available = self._available(session, category)

        deck = pick_weighted(self.rng, available, category)
        card = deck.consume_next(category)
        session.last_draw = LastDraw(deck.id, category)
        session.current_round += 1
        self._persist()
        log.info("draw.card", package=deck.id, round=session.current_round)
        return DrawResult(card, deck.id, deck.name, category, session.current_round)
