# services/search_service.py
"""Hybrid document search: keyword match fused with embedding similarity"""
import logging
import math
from typing import Dict, List, Optional, Tuple

from config import settings
from core.domain import (
    DocumentRecord, DocumentStats, ErrorCode, FILTER_FIELDS,
    RankedDocument, SearchFilters, SearchResults,
)
from core.errors import ValidationError
from core.interfaces import IDocumentStore, IEmbeddingGateway
from services.similarity import cosine_similarity

logger = logging.getLogger(settings.LOGGER_NAME)


def fuse_scores(text_score: float, semantic_score: float) -> int:
    """Weighted blend on a 0-100 scale, halves rounded up."""
    blended = text_score * settings.HYBRID_TEXT_WEIGHT + semantic_score * settings.HYBRID_SEMANTIC_WEIGHT
    return int(math.floor(blended * 100 + 0.5))


class HybridSearchEngine:
    """
    Browse when the query is blank, otherwise rank by fused score.

    Keyword hits score text=1. Every filtered document with an embedding
    is scored by cosine similarity; only scores above
    SEMANTIC_SCORE_THRESHOLD count. Results never carry the extracted
    text or the embedding.
    """

    def __init__(self, store: IDocumentStore, embedder: IEmbeddingGateway):
        self.store = store
        self.embedder = embedder

    @staticmethod
    def _clamp_limit(limit: Optional[int], default: int) -> int:
        if limit is None or limit <= 0:
            return default
        return min(limit, settings.MAX_SEARCH_LIMIT)

    async def browse(
        self,
        filters: Optional[SearchFilters] = None,
        limit: Optional[int] = None,
        sort: Tuple[str, bool] = ("uploaded_at", True),
    ) -> SearchResults:
        """Filtered listing without ranking."""
        filters = filters or SearchFilters()
        limit = self._clamp_limit(limit, settings.BROWSE_DEFAULT_LIMIT)
        records = await self.store.find_many(filters, sort=sort, limit=limit)
        return SearchResults(
            query=None,
            mode="browse",
            documents=[r.to_summary() for r in records],
        )

    async def search(
        self,
        query: Optional[str],
        filters: Optional[SearchFilters] = None,
        limit: Optional[int] = None,
        query_embedding: Optional[List[float]] = None,
    ) -> SearchResults:
        filters = filters or SearchFilters()
        if not query or not query.strip():
            return await self.browse(filters, limit)

        query = query.strip()
        limit = self._clamp_limit(limit, settings.DEFAULT_SEARCH_LIMIT)

        # 1. Keyword candidates
        keyword_hits = await self.store.text_search(
            query, filters, limit * settings.TEXT_CANDIDATE_MULTIPLIER
        )

        # 2. Semantic candidates
        if query_embedding is None:
            query_embedding = await self.embedder.embed_query(query)

        semantic_scores: Dict[str, float] = {}
        semantic_docs: List[DocumentRecord] = []
        if query_embedding:
            for record in await self.store.find_with_embedding(filters):
                score = cosine_similarity(query_embedding, record.embedding)
                if score > settings.SEMANTIC_SCORE_THRESHOLD:
                    semantic_scores[record.id] = score
                    semantic_docs.append(record)
        else:
            logger.info(f"[SEARCH] Query embedding unavailable, keyword-only for: {query[:60]}")

        # 3. Merge: keyword order first, then semantic-only documents
        merged: List[DocumentRecord] = []
        text_ids = set()
        for record in keyword_hits:
            if record.id not in text_ids:
                text_ids.add(record.id)
                merged.append(record)
        for record in semantic_docs:
            if record.id not in text_ids:
                merged.append(record)

        # 4. Fuse and rank (sorted() is stable, so ties keep merge order)
        ranked = []
        for record in merged:
            text_score = 1.0 if record.id in text_ids else 0.0
            semantic_score = semantic_scores.get(record.id, 0.0)
            ranked.append(RankedDocument(
                document=record.to_summary(),
                text_score=text_score,
                semantic_score=semantic_score,
                relevance_score=fuse_scores(text_score, semantic_score),
            ))
        ranked = sorted(ranked, key=lambda r: r.relevance_score, reverse=True)[:limit]

        logger.info(
            f"[SEARCH] '{query[:60]}': {len(keyword_hits)} keyword, "
            f"{len(semantic_docs)} semantic, {len(ranked)} returned"
        )
        return SearchResults(query=query, mode="hybrid", ranked=ranked)

    async def distinct_values(self, field: str) -> List[str]:
        if field not in FILTER_FIELDS:
            raise ValidationError(f"Unsupported field: {field}", ErrorCode.INVALID_FILTER)
        values = await self.store.distinct(field)
        return [v for v in values if isinstance(v, str) and v.strip()]

    async def aggregate_stats(self) -> DocumentStats:
        total = await self.store.count()
        by_category = await self.store.count_by_category()
        recent = await self.store.find_many(
            SearchFilters(), sort=("uploaded_at", True), limit=settings.RECENT_UPLOADS_LIMIT
        )
        breakdown = [
            {"category": category, "count": count}
            for category, count in sorted(by_category.items(), key=lambda item: (-item[1], item[0]))
        ]
        return DocumentStats(
            total_documents=total,
            category_breakdown=breakdown,
            recent_uploads=[
                {"id": r.id, "title": r.title, "uploaded_at": r.uploaded_at}
                for r in recent
            ],
        )
