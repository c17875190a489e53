"""Journal search against the Elsevier serial title API."""

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import httpx

from paperbot.logging_config import get_logger
from paperbot.services.errors import BackendError, InvalidInput

logger = get_logger("journal_service")

MAX_RESULTS = 20
UNKNOWN = "unknown"
SCOPUS_SOURCE_REF = "scopus-source"
NO_JOURNALS_MESSAGE = "No journals found matching your search criteria."


@dataclass(frozen=True)
class JournalRecord:
    title: str
    cite_score: Optional[float] = None
    source_link: Optional[str] = None

    @property
    def cite_score_display(self) -> str:
        return UNKNOWN if self.cite_score is None else f"{self.cite_score:g}"

    @property
    def source_link_display(self) -> str:
        return self.source_link or UNKNOWN


def _parse_cite_score(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score):
        return None
    return score


def _find_source_link(links: Any) -> Optional[str]:
    if isinstance(links, dict):
        links = [links]
    if not isinstance(links, list):
        return None
    for link in links:
        if isinstance(link, dict) and link.get("@ref") == SCOPUS_SOURCE_REF:
            return link.get("@href") or None
    return None


def parse_journal_entries(payload: Any) -> List[JournalRecord]:
    """Turn a serial-metadata response into records, in backend order.

    The backend reports an empty result set as an ``error`` field instead of an
    ``entry`` list; any other shape is rejected.
    """
    response = payload.get("serial-metadata-response") if isinstance(payload, dict) else None
    if not isinstance(response, dict):
        raise BackendError("Malformed search response: missing serial-metadata-response")

    entries = response.get("entry")
    if entries is None:
        if "error" in response:
            logger.info(f"Journal search returned no results: {response.get('error')}")
            return []
        raise BackendError("Malformed search response: missing entry list")
    if not isinstance(entries, list):
        raise BackendError("Malformed search response: entry is not a list")

    records = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        score_info = entry.get("citeScoreYearInfoList")
        raw_score = score_info.get("citeScoreCurrentMetric") if isinstance(score_info, dict) else None
        records.append(
            JournalRecord(
                title=entry.get("dc:title") or UNKNOWN,
                cite_score=_parse_cite_score(raw_score),
                source_link=_find_source_link(entry.get("link")),
            )
        )
    return records


def rank_journals(records: Iterable[JournalRecord], limit: int = MAX_RESULTS) -> List[JournalRecord]:
    """Highest CiteScore first, unknown scores last, input order kept for ties."""
    ranked = sorted(
        records,
        key=lambda record: (record.cite_score is None, -(record.cite_score or 0.0)),
    )
    return ranked[:limit]


def format_journal_results(query: str, records: List[JournalRecord]) -> str:
    if not records:
        return NO_JOURNALS_MESSAGE

    lines = [f'Top {len(records)} journals matching "{query}":', ""]
    for index, record in enumerate(records, start=1):
        lines.append(f"{index}. {record.title}")
        lines.append(f"   CiteScore: {record.cite_score_display}")
        lines.append(f"   Scopus: {record.source_link_display}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


class JournalSearchClient:
    """Client for the bibliographic search backend."""

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.elsevier.com/content/serial/title",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def search(self, query: str, limit: int = MAX_RESULTS) -> List[JournalRecord]:
        query = (query or "").strip()
        if not query:
            raise InvalidInput("Journal title is required")

        params = {"title": query, "apiKey": self.api_key, "view": "STANDARD"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.get(
                    self.api_url,
                    params=params,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Journal search transport error: {e}")
            raise BackendError(f"Journal search transport error: {e}") from e

        if not response.is_success:
            logger.error(
                "Journal search API error",
                extra={"context": {"status": response.status_code, "body": response.text[:200]}},
            )
            raise BackendError(f"API Error: {response.status_code}", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendError("Journal search returned invalid JSON") from e

        records = rank_journals(parse_journal_entries(payload), limit=limit)
        logger.info("Journals found", extra={"context": {"query": query[:100], "count": len(records)}})
        return records
