"""
Evidence lookup for prompt enrichment.

Every retriever exposes `async fetch_evidence(query) -> List[EvidenceItem]` and
never raises; a failed lookup yields an empty list. Callers only read the
first few items.
"""
import logging
from typing import List, Optional

import httpx

from pubmed.client import esearch_pubmed, esummary_pubmed
from rag.config import Settings
from rag.schemas import EvidenceItem

logger = logging.getLogger(__name__)

PUBMED_TERM_CHARS = 300


class NullEvidenceRetriever:
    """Placeholder backend: returns no evidence."""

    async def fetch_evidence(self, query: str) -> List[EvidenceItem]:
        return []


class PubMedEvidenceRetriever:
    def __init__(self, *, max_items: int = 5, api_key: str = "", email: str = "", tool: str = "",
                 transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 30):
        self.max_items = max_items
        self.ncbi = {"api_key": api_key, "email": email, "tool": tool}
        self.transport = transport
        self.timeout = timeout

    async def fetch_evidence(self, query: str) -> List[EvidenceItem]:
        term = " ".join((query or "").split())[:PUBMED_TERM_CHARS]
        if not term:
            return []
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                ids = await esearch_pubmed(client, term, retmax=self.max_items, **self.ncbi)
                result = await esummary_pubmed(client, ids, **self.ncbi)
            out = self._to_evidence(ids, result)
        except Exception as e:
            # Unreachable NCBI or a payload of unexpected shape both mean "no evidence".
            logger.warning(f"PubMed evidence lookup failed: {e}")
            return []
        logger.info(f"PubMed returned {len(out)} evidence items")
        return out

    def _to_evidence(self, ids: list, result: dict) -> List[EvidenceItem]:
        out: List[EvidenceItem] = []
        for pmid in ids[: self.max_items]:
            rec = result.get(pmid) or {}
            pubtypes = rec.get("pubtype") or []
            snippet = ". ".join(p for p in [rec.get("pubdate") or "", ", ".join(pubtypes)] if p)
            out.append(EvidenceItem(
                id=f"PMID:{pmid}",
                title=(rec.get("title") or "")[:300],
                snippet=snippet,
                url=f"https://pubmed.ncbi.nlm.nih.gov/{pmid}/",
            ))
        return out


def build_retriever(settings: Settings):
    if settings.evidence_backend == "pubmed":
        return PubMedEvidenceRetriever(
            max_items=settings.evidence_max_items,
            api_key=settings.ncbi_api_key,
            email=settings.ncbi_email,
            tool=settings.ncbi_tool,
        )
    return NullEvidenceRetriever()
