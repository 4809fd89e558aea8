"""Error taxonomy and user-facing notices."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TruthOrDareError(RuntimeError):
    """Base class for every engine failure."""


class CatalogUnavailable(TruthOrDareError):
    """Raised when the package catalog cannot be read or parsed."""


class ResourceLoadError(TruthOrDareError):
    """Raised when a package's prompt resource fails to load."""

    def __init__(self, package_id: int, path: str, reason: str = "") -> None:
        self.package_id = package_id
        self.path = path
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Failed to load prompts for package {package_id} from {path}{detail}")


class EmptySelection(TruthOrDareError):
    """Raised when a game is started or changed with no packages selected."""


class EmptyCategoryAcrossSelection(TruthOrDareError):
    """Raised when no active package has any prompt of the requested category."""

    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__(f"No selected package contains {category} prompts")


class NoPriorDraw(TruthOrDareError):
    """Raised when pass is requested before anything was drawn."""


class NoActiveSession(TruthOrDareError):
    """Raised when a game operation runs without a started or resumed session."""


class InconsistentSession(TruthOrDareError):
    """Raised when session state breaks its own invariants."""


class NoticeKind(str, Enum):
    """Kinds of notices the engine emits for the presentation layer."""

    CATALOG_UNAVAILABLE = "catalog_unavailable"
    LOAD_FAILED = "load_failed"
    EMPTY_SELECTION = "empty_selection"
    CATEGORY_EXHAUSTED = "category_exhausted"
    EMPTY_CATEGORY = "empty_category"
    PASS_UNAVAILABLE = "pass_unavailable"
    PASS_FALLBACK = "pass_fallback"
    PACKAGE_REMOVED = "package_removed"
    NO_SESSION = "no_session"
    SESSION_STARTED = "session_started"
    SESSION_RESUMED = "session_resumed"
    SESSION_CHANGED = "session_changed"
    RESUME_FAILED = "resume_failed"


@dataclass(frozen=True, slots=True)
class Notice:
    """A short message meant to be shown to the player."""

    kind: NoticeKind
    message: str
    package_id: Optional[int] = None
