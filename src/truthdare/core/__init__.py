"""Card selection and session persistence."""

from . import catalog, deck, engine, errors, reconciler, schemas, session, sources, store

__all__ = ["catalog", "deck", "engine", "errors", "reconciler", "schemas", "session", "sources", "store"]
