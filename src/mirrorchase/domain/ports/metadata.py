"""Ports for title metadata lookups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mirrorchase.domain.entities.links import MediaType, TitleMeta


@runtime_checkable
class MetadataPort(Protocol):
    """Maps a title identifier to a canonical name/year."""

    async def get_meta(self, media_type: MediaType, title_id: str) -> TitleMeta | None:
        """Return TitleMeta or None if the id is unknown."""
        ...


@runtime_checkable
class TitleFallbackPort(Protocol):
    """Secondary title-database lookup keyed by an external (IMDb) id."""

    async def lookup(self, imdb_id: str) -> TitleMeta | None: ...
