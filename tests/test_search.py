import math

import pytest

from core.domain import Category, SearchFilters
from core.errors import ValidationError
from services.search_service import HybridSearchEngine, fuse_scores
from conftest import FakeEmbedder, make_record

QUERY_VECTOR = [1.0, 0.0]


def vector_with_similarity(score: float):
    """Unit vector whose cosine with QUERY_VECTOR equals score."""
    return [score, math.sqrt(1.0 - score * score)]


def test_fuse_scores_weights_keyword_above_semantic():
    assert fuse_scores(1.0, 0.0) == 60
    assert fuse_scores(0.0, 1.0) == 40
    assert fuse_scores(1.0, 1.0) == 100
    assert fuse_scores(1.0, 0.5) == 80


def test_fuse_scores_rounds_halves_up():
    # 0.4 * 0.3125 = 0.125, i.e. 12.5 on the 0-100 scale
    assert fuse_scores(0.0, 0.3125) == 13


async def test_blank_query_browses_without_embedding(store):
    await store.insert(make_record("Older", minutes=1, category=Category.CAMPAIGN))
    await store.insert(make_record("Newer", minutes=2, category=Category.CAMPAIGN))
    await store.insert(make_record("Elsewhere", minutes=3, category=Category.RESEARCH))
    embedder = FakeEmbedder(query_vector=QUERY_VECTOR)
    engine = HybridSearchEngine(store, embedder)

    results = await engine.search("   ", SearchFilters(category="Campaign"), limit=10)

    assert results.mode == "browse"
    assert [d.title for d in results.documents] == ["Newer", "Older"]
    assert results.ranked == []
    assert embedder.queries == []


async def test_browse_truncates_to_limit(store):
    for i in range(5):
        await store.insert(make_record(f"Doc {i}", minutes=i))

    results = await HybridSearchEngine(store, FakeEmbedder()).search("", limit=2)

    assert [d.title for d in results.documents] == ["Doc 4", "Doc 3"]


async def test_keyword_hit_without_embedding_scores_sixty(store):
    await store.insert(make_record("Budget", text="annual budget review"))

    results = await HybridSearchEngine(store, FakeEmbedder(query_vector=None)).search("budget")

    assert results.mode == "hybrid"
    assert [r.relevance_score for r in results.ranked] == [60]
    assert results.ranked[0].semantic_score == 0.0


async def test_semantic_floor_excludes_weak_matches(store):
    strong = make_record("Strong", text="alpha", embedding=vector_with_similarity(0.9))
    weak = make_record("Weak", text="beta", embedding=vector_with_similarity(0.25))
    plain = make_record("Plain", text="gamma")
    for record in (strong, weak, plain):
        await store.insert(record)

    results = await HybridSearchEngine(store, FakeEmbedder(query_vector=QUERY_VECTOR)).search("unmatched")

    assert [r.document.id for r in results.ranked] == [strong.id]
    assert results.ranked[0].relevance_score == round(0.9 * 0.4 * 100)


async def test_documents_in_both_sets_combine_scores(store):
    both = make_record("Launch plan", text="launch", embedding=vector_with_similarity(0.5))
    await store.insert(both)

    results = await HybridSearchEngine(store, FakeEmbedder(query_vector=QUERY_VECTOR)).search("launch")

    assert len(results.ranked) == 1
    hit = results.ranked[0]
    assert hit.text_score == 1.0
    assert hit.semantic_score == pytest.approx(0.5)
    assert hit.relevance_score == 80


async def test_caller_supplied_query_embedding_skips_gateway(store):
    await store.insert(make_record("Vec", text="x", embedding=vector_with_similarity(0.8)))
    embedder = FakeEmbedder(query_vector=None)

    results = await HybridSearchEngine(store, embedder).search(
        "nothing", query_embedding=QUERY_VECTOR
    )

    assert embedder.queries == []
    assert [r.relevance_score for r in results.ranked] == [32]


async def test_q4_campaign_scenario(store):
    keyword = make_record(
        "Q4 campaign brief", text="Q4 campaign goals", category=Category.CAMPAIGN, minutes=1,
    )
    semantic_only = make_record(
        "Holiday push", text="seasonal promotion", category=Category.CAMPAIGN,
        embedding=vector_with_similarity(0.6), minutes=2,
    )
    wrong_category = make_record(
        "Q4 campaign research", text="Q4 campaign survey", category=Category.RESEARCH,
        embedding=vector_with_similarity(0.95), minutes=3,
    )
    for record in (keyword, semantic_only, wrong_category):
        await store.insert(record)

    engine = HybridSearchEngine(store, FakeEmbedder(query_vector=QUERY_VECTOR))
    results = await engine.search("Q4 campaign", SearchFilters(category="Campaign"), limit=20)

    assert [r.document.id for r in results.ranked] == [keyword.id, semantic_only.id]
    assert [r.relevance_score for r in results.ranked] == [60, 24]
    assert all(r.document.category is Category.CAMPAIGN for r in results.ranked)


async def test_ties_keep_keyword_order_and_limit_applies(store):
    for i in range(4):
        await store.insert(make_record(f"Report {i}", text="report", minutes=i))

    results = await HybridSearchEngine(store, FakeEmbedder()).search("report", limit=3)

    assert [r.document.title for r in results.ranked] == ["Report 3", "Report 2", "Report 1"]


async def test_results_never_carry_text_or_embedding(store):
    await store.insert(make_record("Secret", text="secret body", embedding=vector_with_similarity(0.99)))

    results = await HybridSearchEngine(store, FakeEmbedder(query_vector=QUERY_VECTOR)).search("secret")

    summary = results.ranked[0].document
    assert not hasattr(summary, "embedding")
    assert not hasattr(summary, "extracted_text")
    assert summary.has_embedding
    assert 0 <= results.ranked[0].relevance_score <= 100


async def test_distinct_values(store):
    await store.insert(make_record("A", project="Launch"))
    await store.insert(make_record("B", project="  "))
    engine = HybridSearchEngine(store, FakeEmbedder())

    assert await engine.distinct_values("project") == ["Launch"]
    with pytest.raises(ValidationError):
        await engine.distinct_values("uploaded_by")


async def test_aggregate_stats(store):
    for i in range(7):
        category = Category.CAMPAIGN if i % 2 else Category.STRATEGY
        await store.insert(make_record(f"Doc {i}", category=category, minutes=i))

    stats = await HybridSearchEngine(store, FakeEmbedder()).aggregate_stats()

    assert stats.total_documents == 7
    assert stats.category_breakdown == [
        {"category": "Strategy", "count": 4},
        {"category": "Campaign", "count": 3},
    ]
    assert [u["title"] for u in stats.recent_uploads] == ["Doc 6", "Doc 5", "Doc 4", "Doc 3", "Doc 2"]
