"""Persona catalog loading.

The manifest lists personas either inline or as references to persona
files. References resolve relative to the manifest, which may be a local
path or an http(s) URL. ``.yaml``/``.yml`` files are parsed as YAML, anything
else as JSON.
"""

import json
import logging
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import urljoin, urlparse

import httpx
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from personachat.domain.entities import PersonaConfig
from personachat.domain.exceptions import PersonaNotFoundError
from personachat.infrastructure.catalog.exceptions import CatalogLoadError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


class PersonaRecord(BaseModel):
    """Persona file schema (camelCase keys as published in the catalog)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    # handle is part of the conversation id, so it cannot hold the separator
    twitter_username: str = Field(alias="twitterUsername", pattern=r"^[^:\s]+$")
    tweet_examples: list[str] = Field(default_factory=list, alias="tweetExamples")
    characteristics: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    language: str = "English"

    def to_entity(self) -> PersonaConfig:
        return PersonaConfig(
            name=self.name,
            twitter_username=self.twitter_username,
            tweet_examples=list(self.tweet_examples),
            characteristics=list(self.characteristics),
            topics=list(self.topics),
            language=self.language,
        )


class PersonaCatalog:
    """Read-only collection of personas keyed by handle."""

    def __init__(self, personas: list[PersonaConfig]) -> None:
        self._personas: dict[str, PersonaConfig] = {}
        for persona in personas:
            if persona.handle in self._personas:
                logger.warning("Duplicate persona @%s ignored", persona.handle)
                continue
            self._personas[persona.handle] = persona

    def get(self, handle: str) -> PersonaConfig | None:
        """Persona by handle, or None."""
        return self._personas.get(handle)

    def require(self, handle: str) -> PersonaConfig:
        """Persona by handle.

        Raises:
            PersonaNotFoundError: Unknown handle.
        """
        persona = self._personas.get(handle)
        if persona is None:
            raise PersonaNotFoundError(handle)
        return persona

    def all(self) -> list[PersonaConfig]:
        """Every persona in catalog order."""
        return list(self._personas.values())

    def search(self, query: str) -> list[PersonaConfig]:
        """Personas whose name or handle contains the query."""
        return [p for p in self._personas.values() if p.matches(query)]

    def __len__(self) -> int:
        return len(self._personas)


class PersonaCatalogLoader:
    """Fetches the manifest and persona files once at startup."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http_client = http_client

    async def load(self, manifest: str) -> PersonaCatalog:
        """Load every persona listed in a manifest.

        Args:
            manifest: Manifest path or URL.

        Returns:
            Loaded catalog.

        Raises:
            CatalogLoadError: Fetch, parse or validation failure.
        """
        data = await self._fetch_document(manifest)
        entries = data.get("personas") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise CatalogLoadError(f"Manifest {manifest} has no 'personas' list")

        personas: list[PersonaConfig] = []
        for entry in entries:
            if isinstance(entry, str):
                location = _resolve(manifest, entry)
                record = await self._fetch_document(location)
            else:
                location = manifest
                record = entry
            personas.append(_validate(record, location))

        logger.info("Loaded %d personas from %s", len(personas), manifest)
        return PersonaCatalog(personas)

    async def _fetch_document(self, location: str) -> Any:
        """Read and parse a JSON or YAML document."""
        text = await self._read(location)
        try:
            if _suffix(location) in YAML_SUFFIXES:
                return yaml.safe_load(text)
            return json.loads(text)
        except (ValueError, yaml.YAMLError) as e:
            raise CatalogLoadError(f"Failed to parse {location}: {e}") from e

    async def _read(self, location: str) -> str:
        if _is_url(location):
            try:
                response = await self._http_client.get(location)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise CatalogLoadError(f"Failed to fetch {location}: {e}") from e
            return response.text

        try:
            return Path(location).read_text(encoding="utf-8")
        except OSError as e:
            raise CatalogLoadError(f"Failed to read {location}: {e}") from e


def _validate(record: Any, location: str) -> PersonaConfig:
    try:
        return PersonaRecord.model_validate(record).to_entity()
    except ValidationError as e:
        raise CatalogLoadError(f"Invalid persona in {location}: {e}") from e


def _is_url(location: str) -> bool:
    return urlparse(location).scheme in ("http", "https")


def _suffix(location: str) -> str:
    path = urlparse(location).path if _is_url(location) else location
    return PurePosixPath(path).suffix.lower()


def _resolve(manifest: str, reference: str) -> str:
    """Resolve a persona file reference against the manifest location."""
    if _is_url(reference) or Path(reference).is_absolute():
        return reference
    if _is_url(manifest):
        return urljoin(manifest, reference)
    return str(Path(manifest).parent / reference)
