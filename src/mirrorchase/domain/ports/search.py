"""Port for the content-site search/matching collaborator."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mirrorchase.domain.entities.links import ContentPage, SearchHit


@runtime_checkable
class ContentSearchPort(Protocol):
    """Finds content pages for a query and loads them.

    The search/matching step itself (challenge solving, relevance
    scoring) lives outside this package.
    """

    async def search(self, query: str) -> list[SearchHit]:
        """Search the content site. Empty list = nothing found."""
        ...

    async def load_content_page(self, url: str) -> ContentPage:
        """Load a content detail page with its download page links."""
        ...
