"""Package catalog loaded once at startup."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

import orjson
import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import CatalogUnavailable
from .sources import PromptSource

LOGGER = structlog.get_logger(__name__)

DEFAULT_CATALOG_PATH = "card_mapping.json"


class PackageDescriptor(BaseModel):
    """Catalog metadata for one content package."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    description: str = ""
    truth_source: str = Field(..., alias="truth", description="Path of the truth prompt resource")
    dare_source: str = Field(..., alias="dare", description="Path of the dare prompt resource")


_DESCRIPTORS = TypeAdapter(List[PackageDescriptor])


class ContentCatalog:
    """Immutable, ordered collection of :class:`PackageDescriptor` entries."""

    def __init__(self, descriptors: List[PackageDescriptor]) -> None:
        self._ordered = list(descriptors)
        self._by_id: Dict[int, PackageDescriptor] = {}
        for descriptor in self._ordered:
            if descriptor.id in self._by_id:
                raise CatalogUnavailable(f"Duplicate package id {descriptor.id} in catalog")
            self._by_id[descriptor.id] = descriptor

    @classmethod
    def load(cls, source: PromptSource, path: str = DEFAULT_CATALOG_PATH) -> "ContentCatalog":
        """Read and validate the catalog resource.

        Raises:
            CatalogUnavailable: the resource is missing, is not JSON, or does
                not describe a list of packages.
        """
        try:
            raw = source.read_text(path)
        except OSError as exc:
            LOGGER.error("catalog.read_failed", path=path, error=str(exc))
            raise CatalogUnavailable(f"Cannot read catalog {path}: {exc}") from exc

        try:
            descriptors = _DESCRIPTORS.validate_python(orjson.loads(raw))
        except orjson.JSONDecodeError as exc:
            LOGGER.error("catalog.parse_failed", path=path, error=str(exc))
            raise CatalogUnavailable(f"Catalog {path} is not valid JSON") from exc
        except ValidationError as exc:
            LOGGER.error("catalog.invalid", path=path, errors=exc.error_count())
            raise CatalogUnavailable(f"Catalog {path} failed validation: {exc.errors()}") from exc

        catalog = cls(descriptors)
        LOGGER.info("catalog.loaded", path=path, packages=len(catalog))
        return catalog

    def list(self) -> List[PackageDescriptor]:
        return list(self._ordered)

    def find(self, package_id: int) -> Optional[PackageDescriptor]:
        return self._by_id.get(package_id)

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._by_id

    def __iter__(self) -> Iterator[PackageDescriptor]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)
