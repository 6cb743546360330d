"""Citation Extractor — turns raw model output into a list of citations.

Three passes over the response text, each appending results that are not
already present (dedup key: the URL, or ``citation-{n}`` for numbered
markers with no URL nearby):
  1. Bare URLs: https://example.com/page
  2. Numbered markers: [1], [^2], with a URL looked up near the marker
  3. Localized "Sources" / "Fontes" / "Quellen" ... sections

Also provides boundary helpers that normalize any accepted citation shape
(plain string, dict with url/link, object) into ``Citation``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlsplit

from citation_recency.analysis.patterns import (
    CITATION_CONTEXT_MAX,
    CITATION_LOOKAHEAD,
    CITATION_LOOKBEHIND,
    NUMBERED_CITATION_PATTERN,
    SOURCES_SECTION_REGEX,
    URL_PATTERN,
    strip_trailing_punctuation,
)
from citation_recency.analysis.types import Citation

logger = logging.getLogger(__name__)

UNKNOWN_DOMAIN = "unknown"

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE = re.compile(r"\s+")
_CONTEXT_STRIP = " \t:-–—,;.()*•"


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------


def extract_domain(url: str) -> str:
    """Extract domain from URL, lower-cased with www. stripped.

    Scheme-less input ("example.com/page") is accepted. Returns "" when no
    host can be parsed.
    """
    candidate = (url or "").strip()
    if not candidate:
        return ""
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    try:
        host = urlsplit(candidate).hostname or ""
    except ValueError:
        return ""
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def _url_citation(url: str, title: str | None = None) -> Citation | None:
    """Build a citation for a URL, or None if the URL is malformed."""
    domain = extract_domain(url)
    if not domain or " " in domain:
        return None
    return Citation(url=url, domain=domain, title=title or f"Source from {domain}")


# ---------------------------------------------------------------------------
# Numbered citations
# ---------------------------------------------------------------------------


def _nearest_url(text: str, start: int, end: int) -> str | None:
    """URL closest to a [n] marker: forward window first, then backward."""
    ahead = URL_PATTERN.search(text, end, min(len(text), end + CITATION_LOOKAHEAD))
    if ahead:
        return strip_trailing_punctuation(ahead.group(0))

    behind = list(URL_PATTERN.finditer(text, max(0, start - CITATION_LOOKBEHIND), start))
    if behind:
        return strip_trailing_punctuation(behind[-1].group(0))
    return None


def _clean_context(fragment: str) -> str:
    fragment = URL_PATTERN.sub(" ", fragment)
    fragment = NUMBERED_CITATION_PATTERN.sub(" ", fragment)
    fragment = _WHITESPACE.sub(" ", fragment)
    return fragment.strip(_CONTEXT_STRIP)


def _citation_context(text: str, start: int, end: int) -> str:
    """Label for a numbered citation.

    Reference-list lines ("[1] Glassdoor reviews") use the text after the
    marker; inline markers ("... Nubank [1].") use the sentence before it.
    """
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    if line_end == -1:
        line_end = len(text)

    prefix = text[line_start:start]
    if prefix.strip(_CONTEXT_STRIP + "0123456789") == "":
        context = _clean_context(text[end:line_end])
        return context[:CITATION_CONTEXT_MAX].rstrip()

    sentences = _SENTENCE_SPLIT.split(prefix)
    context = _clean_context(sentences[-1] if sentences else prefix)
    return context[-CITATION_CONTEXT_MAX:].lstrip()


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_citations(text: str) -> list[Citation]:
    """Extract all citations from a model response.

    Args:
        text: Raw response text (markdown or plain).

    Returns:
        Citations in discovery order (bare URLs, then numbered markers,
        then the Sources section), deduplicated by URL or ``citation-{n}``.
    """
    citations: list[Citation] = []
    seen: set[str] = set()

    def _add(key: str, citation: Citation | None) -> None:
        if citation is None or key in seen:
            return
        seen.add(key)
        citations.append(citation)

    if not text:
        return citations

    # 1. Bare URLs
    for match in URL_PATTERN.finditer(text):
        url = strip_trailing_punctuation(match.group(0))
        _add(url, _url_citation(url))

    # 2. Numbered markers, grouped by number in order of first appearance
    occurrences: dict[int, list[re.Match[str]]] = {}
    for match in NUMBERED_CITATION_PATTERN.finditer(text):
        occurrences.setdefault(int(match.group(1)), []).append(match)

    for number, matches in occurrences.items():
        url = next(
            (u for u in (_nearest_url(text, m.start(), m.end()) for m in matches) if u),
            None,
        )
        first = matches[0]
        context = _citation_context(text, first.start(), first.end())
        title = f"Citation [{number}]: {context}" if context else f"Citation [{number}]"
        if url:
            _add(url, _url_citation(url, title=title))
        else:
            _add(f"citation-{number}", Citation(url=None, domain=UNKNOWN_DOMAIN, title=title))

    # 3. Localized "Sources" sections
    for section in SOURCES_SECTION_REGEX.finditer(text):
        for match in URL_PATTERN.finditer(section.group(1)):
            url = strip_trailing_punctuation(match.group(0))
            _add(url, _url_citation(url))

    logger.debug("Extracted %d citations from %d chars", len(citations), len(text))
    return citations


def find_sources_section(text: str) -> str | None:
    """Return the block of lines under the first localized "Sources" header."""
    match = SOURCES_SECTION_REGEX.search(text or "")
    return match.group(1) if match else None


# ---------------------------------------------------------------------------
# Boundary normalization
# ---------------------------------------------------------------------------


def _clean_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _normalize_domain(domain: str) -> str:
    domain = domain.lower()
    return domain[4:] if domain.startswith("www.") else domain


def normalize_citation(raw: Any) -> Citation | None:
    """Map any accepted citation shape onto ``Citation``.

    Accepts a URL or source-name string, a mapping or an object with
    ``url``/``link``, ``domain``, ``title`` and ``sourceType``/``source_type``.
    Returns None for empty or unsupported input.
    """
    if raw is None:
        return None
    if isinstance(raw, Citation):
        return raw

    if isinstance(raw, str):
        value = raw.strip()
        if not value:
            return None
        if URL_PATTERN.match(value):
            return Citation(url=value, domain=extract_domain(value) or UNKNOWN_DOMAIN)
        if " " in value:
            return Citation(domain=value, title=value)
        return Citation(domain=extract_domain(value) or value)

    if isinstance(raw, Mapping):
        get = raw.get
    elif hasattr(raw, "__dict__"):

        def get(key: str, default: Any = None) -> Any:
            return getattr(raw, key, default)

    else:
        return None

    url = _clean_str(get("url")) or _clean_str(get("link"))
    domain = _clean_str(get("domain"))
    if domain:
        domain = _normalize_domain(domain)
    else:
        domain = (extract_domain(url) if url else "") or UNKNOWN_DOMAIN

    return Citation(
        url=url,
        domain=domain,
        title=_clean_str(get("title")),
        source_type=_clean_str(get("sourceType")) or _clean_str(get("source_type")),
    )


def normalize_citations(raw_items: Iterable[Any]) -> list[Citation]:
    """Normalize a list of raw citations, dropping unusable entries."""
    citations: list[Citation] = []
    for raw in raw_items:
        citation = normalize_citation(raw)
        if citation is not None:
            citations.append(citation)
    return citations


# ---------------------------------------------------------------------------
# Domain helpers
# ---------------------------------------------------------------------------


def get_unique_domains(citations: list[Citation]) -> list[str]:
    """Get a deduplicated list of domains from citations."""
    seen: set[str] = set()
    domains: list[str] = []
    for c in citations:
        if c.domain and c.domain not in seen:
            seen.add(c.domain)
            domains.append(c.domain)
    return domains


def group_citations_by_domain(citations: list[Citation]) -> dict[str, list[Citation]]:
    """Group citations by domain, preserving first-seen domain order."""
    grouped: dict[str, list[Citation]] = {}
    for c in citations:
        if c.domain:
            grouped.setdefault(c.domain, []).append(c)
    return grouped
