"""Truth or dare prompt engine with fair, resumable draws."""

from .core.catalog import ContentCatalog, PackageDescriptor
from .core.engine import DrawEngine, DrawResult
from .core.schemas import Category

__version__ = "0.1.0"

__all__ = [
    "Category",
    "ContentCatalog",
    "DrawEngine",
    "DrawResult",
    "PackageDescriptor",
    "__version__",
]
