"""Port for seekability checks on direct media URLs."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mirrorchase.domain.entities.links import SeekCheck


@runtime_checkable
class SeekValidatorPort(Protocol):
    """Confirms a direct media URL answers byte-range requests."""

    async def validate(
        self,
        url: str,
        *,
        require_partial_content: bool = True,
        timeout_ms: int = 4000,
    ) -> SeekCheck: ...
