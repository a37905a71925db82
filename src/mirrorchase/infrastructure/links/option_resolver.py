"""Single option -> terminal stream (resolve, gate, label, size)."""

from __future__ import annotations

import structlog

from mirrorchase.domain.entities.links import (
    PendingOption,
    ResolutionRequest,
    TerminalStream,
)
from mirrorchase.domain.ports.validator import SeekValidatorPort
from mirrorchase.infrastructure.common.parsers import (
    extract_size_from_text,
    filename_from_url,
    format_bytes,
)

from .classifier import classify
from .filename import FilenameRecoverer
from .resolver import IntermediaryResolver

log = structlog.get_logger(__name__)


class OptionResolver:
    """Resolves one queued option into a labelled ``TerminalStream``.

    Direct candidates that are not wrappers must pass the seekability
    check; a failed check discards the option.  Wrappers, ID-based
    hosters and unknown-shaped URLs are surfaced without a probe.

    Label priority: probe filename, URL filename, recovered hoster
    filename, then ``"<title> <quality>"``.  Size priority: option size
    hint, size in label, size in URL, formatted content length.
    """

    def __init__(
        self,
        resolver: IntermediaryResolver,
        validator: SeekValidatorPort,
        filename_recoverer: FilenameRecoverer,
        *,
        require_partial_content: bool = True,
        seek_timeout_ms: int = 4000,
    ) -> None:
        self._resolver = resolver
        self._validator = validator
        self._filename_recoverer = filename_recoverer
        self._require_partial_content = require_partial_content
        self._seek_timeout_ms = seek_timeout_ms

    async def resolve(
        self,
        pending: PendingOption,
        *,
        display_title: str,
        languages: tuple[str, ...] = (),
    ) -> TerminalStream | None:
        option = pending.option
        url = await self._resolver.resolve(
            ResolutionRequest(
                target_url=option.target_url,
                source_page_url=pending.source_page_url,
                quality_hint=option.quality_label,
            )
        )
        if not url:
            return None

        link = classify(url)
        filename: str | None = None
        content_length: int | None = None
        if not link.is_wrapper and link.is_direct_candidate:
            check = await self._validator.validate(
                url,
                require_partial_content=self._require_partial_content,
                timeout_ms=self._seek_timeout_ms,
            )
            if not check.is_valid:
                log.info("direct_link_not_seekable", url=url, status=check.status_code)
                return None
            filename = check.filename
            content_length = check.content_length

        inferred: str | None = None
        if link.is_id_based_hoster:
            inferred = await self._filename_recoverer.recover(url)
        elif not link.is_wrapper:
            inferred = filename or filename_from_url(url)

        if inferred and inferred.strip():
            label = inferred.strip()
        else:
            label = f"{display_title} {option.quality_label}".strip()

        size = (
            option.size_hint
            or extract_size_from_text(label)
            or extract_size_from_text(url)
            or format_bytes(content_length)
        )
        log.debug("option_resolved", target=option.target_url, url=url, kind=link.kind)
        return TerminalStream(url=url, label=label, size_text=size, languages=languages)
