import pytest

from core.domain import Category, SearchFilters
from core.errors import ValidationError
from infrastructure.repositories import tokenize_query
from conftest import make_record


def test_tokenize_query_dedupes_and_drops_short_terms():
    assert tokenize_query("Q4 campaign, a CAMPAIGN!") == ["q4", "campaign"]


async def test_insert_then_fetch_round_trips_text(store):
    record = make_record(text="Quarterly brand strategy: ünïcode and all", tags=["brand", "q4"])
    await store.insert(record)

    fetched = await store.find_by_id(record.id)

    assert fetched.extracted_text == record.extracted_text
    assert fetched.tags == ["brand", "q4"]
    assert fetched.embedding is None
    assert fetched.access_count == 0


async def test_find_by_id_missing_returns_none(store):
    assert await store.find_by_id("00000000-0000-0000-0000-000000000000") is None


async def test_find_many_filters_and_sorts(store):
    await store.insert(make_record("Old", category=Category.CAMPAIGN, minutes=1))
    await store.insert(make_record("New", category=Category.CAMPAIGN, minutes=5))
    await store.insert(make_record("Other", category=Category.RESEARCH, minutes=9))

    newest_first = await store.find_many(SearchFilters(category="Campaign"))
    assert [r.title for r in newest_first] == ["New", "Old"]

    by_title = await store.find_many(SearchFilters(), sort=("title", False), limit=2)
    assert [r.title for r in by_title] == ["New", "Old"]


async def test_find_many_rejects_unknown_sort(store):
    with pytest.raises(ValidationError):
        await store.find_many(SearchFilters(), sort=("extracted_text", True))


async def test_find_with_embedding_skips_unembedded(store):
    embedded = make_record("Embedded", embedding=[0.1, 0.2])
    await store.insert(embedded)
    await store.insert(make_record("Plain"))

    results = await store.find_with_embedding(SearchFilters())

    assert [r.id for r in results] == [embedded.id]
    assert results[0].embedding == [0.1, 0.2]


async def test_text_search_matches_any_term_case_insensitively(store):
    title_hit = make_record("Q4 Plan", text="nothing relevant here")
    body_hit = make_record("Notes", text="The CAMPAIGN budget")
    tag_hit = make_record("Tagged", text="unrelated body", tags=["launch"])
    await store.insert(title_hit)
    await store.insert(body_hit)
    await store.insert(tag_hit)
    await store.insert(make_record("Miss", text="completely different"))

    results = await store.text_search("q4 campaign launch", SearchFilters(), limit=10)

    assert {r.id for r in results} == {title_hit.id, body_hit.id, tag_hit.id}


async def test_text_search_matches_non_ascii_tags(store):
    tagged = make_record("Tagged", text="unrelated body", tags=["café", "straße"])
    await store.insert(tagged)

    assert [r.id for r in await store.text_search("café", SearchFilters(), limit=5)] == [tagged.id]
    assert [r.id for r in await store.text_search("straße", SearchFilters(), limit=5)] == [tagged.id]


async def test_text_search_respects_filters_and_limit(store):
    for i in range(3):
        await store.insert(make_record(f"Campaign {i}", category=Category.CAMPAIGN, minutes=i))
    await store.insert(make_record("Campaign research", category=Category.RESEARCH))

    results = await store.text_search("campaign", SearchFilters(category="Campaign"), limit=2)

    assert len(results) == 2
    assert all(r.category is Category.CAMPAIGN for r in results)


async def test_text_search_treats_wildcards_literally(store):
    await store.insert(make_record("Plain", text="nothing special"))
    assert await store.text_search("%%", SearchFilters(), limit=5) == []


async def test_distinct_drops_blank_values(store):
    await store.insert(make_record("A", team="Brand"))
    await store.insert(make_record("B", team=""))
    await store.insert(make_record("C", team="Brand"))
    await store.insert(make_record("D", team="Growth"))

    assert await store.distinct("team") == ["Brand", "Growth"]


async def test_distinct_rejects_unknown_field(store):
    with pytest.raises(ValidationError):
        await store.distinct("extracted_text")


async def test_update_and_delete(store):
    record = make_record("Doc")
    await store.insert(record)

    assert await store.update(record.id, {"access_count": 3, "category": Category.ANALYTICS})
    updated = await store.find_by_id(record.id)
    assert updated.access_count == 3
    assert updated.category is Category.ANALYTICS

    assert await store.update("missing", {"access_count": 1}) is False
    with pytest.raises(ValidationError):
        await store.update(record.id, {"extracted_text": "rewritten"})

    assert await store.delete_by_id(record.id) is True
    assert await store.delete_by_id(record.id) is False


async def test_counts(store):
    await store.insert(make_record("A", category=Category.CAMPAIGN))
    await store.insert(make_record("B", category=Category.CAMPAIGN))
    await store.insert(make_record("C", category=Category.RESEARCH))

    assert await store.count() == 3
    assert await store.count_by_category() == {"Campaign": 2, "Research": 1}
