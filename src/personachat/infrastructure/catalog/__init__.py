"""Persona catalog infrastructure."""

from personachat.infrastructure.catalog.exceptions import CatalogLoadError
from personachat.infrastructure.catalog.persona_catalog import (
    PersonaCatalog,
    PersonaCatalogLoader,
    PersonaRecord,
)

__all__ = [
    "CatalogLoadError",
    "PersonaCatalog",
    "PersonaCatalogLoader",
    "PersonaRecord",
]
