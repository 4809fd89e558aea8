"""Merges a changed package selection into a running session."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import structlog

from .catalog import ContentCatalog
from .deck import PackageDeck
from .errors import EmptySelection, ResourceLoadError
from .schemas import SessionSnapshot
from .session import Session
from .sources import PromptSource

LOGGER = structlog.get_logger(__name__)


@dataclass
class ReconcileReport:
    """What happened to each package during a reconciliation."""

    retained: List[int] = field(default_factory=list)
    removed: List[int] = field(default_factory=list)
    restored: List[int] = field(default_factory=list)
    fresh: List[int] = field(default_factory=list)
    failed: List[ResourceLoadError] = field(default_factory=list)
    unknown: List[int] = field(default_factory=list)
    pass_cleared: bool = False
    removed_last_package: Optional[int] = None


class SessionReconciler:
    """Applies a new package selection without losing progress on kept packages."""

    def __init__(self, catalog: ContentCatalog, source: PromptSource, rng: random.Random) -> None:
        self.catalog = catalog
        self.source = source
        self.rng = rng

    def reconcile(
        self,
        session: Session,
        package_ids: Iterable[int],
        snapshot: Optional[SessionSnapshot] = None,
    ) -> ReconcileReport:
        """Replace the session's decks with the ones for ``package_ids``.

        Kept packages are untouched, dropped ones are discarded (clearing the
        last draw when it pointed at one of them) and newly selected ones are
        restored from ``snapshot`` when it holds their state, otherwise loaded
        fresh.

        Raises:
            EmptySelection: ``package_ids`` is empty; the session is untouched.
        """
        selected = list(dict.fromkeys(int(package_id) for package_id in package_ids))
        if not selected:
            raise EmptySelection("Select at least one package")

        report = ReconcileReport()
        wanted = set(selected)
        decks: Dict[int, PackageDeck] = {}

        for package_id, deck in session.decks.items():
            if package_id in wanted:
                decks[package_id] = deck
                report.retained.append(package_id)
            else:
                report.removed.append(package_id)

        if session.last_draw is not None and session.last_draw.package_id in report.removed:
            report.pass_cleared = True
            report.removed_last_package = session.last_draw.package_id
            session.last_draw = None

        for package_id in selected:
            if package_id in decks:
                continue
            descriptor = self.catalog.find(package_id)
            if descriptor is None:
                LOGGER.warning("reconcile.unknown_package", package=package_id)
                report.unknown.append(package_id)
                continue

            deck = PackageDeck.for_descriptor(descriptor)
            saved = snapshot.package_state(package_id) if snapshot is not None else None
            if saved is not None:
                deck.restore(saved)
                report.restored.append(package_id)
                LOGGER.info("reconcile.restored", package=package_id)
            else:
                try:
                    deck.populate_fresh(self.source, descriptor, self.rng)
                except ResourceLoadError as exc:
                    report.failed.append(exc)
                    continue
                report.fresh.append(package_id)
            decks[package_id] = deck

        session.decks = decks
        LOGGER.info(
            "reconcile.done",
            retained=report.retained,
            removed=report.removed,
            restored=report.restored,
            fresh=report.fresh,
            failed=[exc.package_id for exc in report.failed],
        )
        return report
