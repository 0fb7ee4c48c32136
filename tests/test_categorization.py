import json
import time
from unittest.mock import MagicMock

import pytest

from core.domain import Category, Categorization
from core.errors import GatewayError
from infrastructure.categorization_services import (
    LLMCategorizationGateway,
    build_prompt,
    extract_json_object,
    normalize_categorization,
)


def test_extract_json_strips_markdown_fences():
    raw = '```json\n{"category": "Campaign", "team": "Growth"}\n```'
    assert extract_json_object(raw) == {"category": "Campaign", "team": "Growth"}


def test_extract_json_ignores_surrounding_prose():
    raw = 'Sure! Here it is: {"category": "Research"} Hope that helps.'
    assert extract_json_object(raw)["category"] == "Research"


@pytest.mark.parametrize("raw", ["", "no json here", "[1, 2, 3]", "{not valid json}"])
def test_extract_json_rejects_garbage(raw):
    with pytest.raises(ValueError):
        extract_json_object(raw)


def test_prompt_only_carries_text_sample():
    prompt = build_prompt("t", "Q" * 5000)
    assert prompt.count("Q") == 2000


def test_normalize_maps_category_case_insensitively():
    result = normalize_categorization({"category": "campaign"})
    assert result.category is Category.CAMPAIGN


def test_normalize_unknown_category_becomes_other():
    result = normalize_categorization({"category": "Finance"})
    assert result.category is Category.OTHER


def test_normalize_defaults_blank_labels():
    result = normalize_categorization({"team": "  ", "project": None, "summary": ""})
    assert result.team == "General"
    assert result.project == "Uncategorized"
    assert result.summary is None


def test_normalize_coerces_tags():
    result = normalize_categorization({"tags": "q4, launch , ,q4"})
    assert result.tags == ["q4", "launch"]

    many = normalize_categorization({"tags": [f"tag{i}" for i in range(30)] + [None, {"x": 1}]})
    assert len(many.tags) == 10

    long_tag = normalize_categorization({"tags": ["x" * 80]})
    assert len(long_tag.tags[0]) == 50


async def test_gateway_returns_parsed_labels():
    llm = MagicMock()
    llm.generate.return_value = "```json\n" + json.dumps({
        "category": "Campaign",
        "team": "Brand",
        "project": "Q4 Launch",
        "tags": ["q4", "campaign"],
        "summary": "Launch plan.",
    }) + "\n```"

    outcome = await LLMCategorizationGateway(llm, timeout=1.0).categorize("Plan", "Q4 campaign plan")

    assert not outcome.degraded
    assert outcome.result.category is Category.CAMPAIGN
    assert outcome.result.project == "Q4 Launch"


async def test_gateway_falls_back_on_provider_error():
    llm = MagicMock()
    llm.generate.side_effect = GatewayError("connection refused")

    outcome = await LLMCategorizationGateway(llm, timeout=1.0).categorize("Plan", "text")

    assert outcome.degraded
    assert outcome.result == Categorization.fallback()
    assert outcome.result.tags == ["document", "marketing"]
    assert outcome.result.summary == "Document uploaded to the system."


async def test_gateway_falls_back_on_unparseable_reply():
    llm = MagicMock()
    llm.generate.return_value = "I cannot categorize this."

    outcome = await LLMCategorizationGateway(llm, timeout=1.0).categorize("Plan", "text")

    assert outcome.degraded
    assert outcome.result.category is Category.OTHER


async def test_gateway_falls_back_on_timeout():
    llm = MagicMock()
    llm.generate.side_effect = lambda *args, **kwargs: time.sleep(0.5) or "{}"

    outcome = await LLMCategorizationGateway(llm, timeout=0.05).categorize("Plan", "text")

    assert outcome.degraded
    assert "timed out" in outcome.reason
