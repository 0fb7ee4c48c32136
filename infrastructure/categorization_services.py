"""Document categorization through the external LLM provider"""
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

from core.domain import (
    Category, Categorization, CategorizationOutcome,
    DEFAULT_PROJECT, DEFAULT_TEAM,
)
from core.errors import GatewayError
from core.interfaces import ICategorizationGateway
from services.llm_service import LLMService
from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)

CATEGORIZATION_PROMPT = """Analyze this marketing document and provide categorization in JSON format.

Title: {title}
Content: {sample}

Return ONLY a JSON object with this exact structure (no markdown, no explanation):
{{
  "category": "one of: {categories}",
  "team": "inferred team name or '{default_team}'",
  "project": "inferred project name or '{default_project}'",
  "tags": ["3-5 relevant keywords"],
  "summary": "2-3 sentence summary"
}}"""

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def build_prompt(title: str, text: str, sample_chars: int = settings.CATEGORIZATION_SAMPLE_CHARS) -> str:
    """Prompt with a bounded text sample, never the full document."""
    return CATEGORIZATION_PROMPT.format(
        title=title,
        sample=text[:sample_chars],
        categories=", ".join(c.value for c in Category),
        default_team=DEFAULT_TEAM,
        default_project=DEFAULT_PROJECT,
    )


def extract_json_object(raw: str) -> Dict[str, Any]:
    """
    Pull the first JSON object out of a model reply.

    Strips markdown fences and any prose around the braces.
    Raises ValueError when no object can be parsed.
    """
    cleaned = _CODE_FENCE.sub("", raw or "").strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON object found in LLM response")

    parsed = json.loads(cleaned[start:end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("LLM response JSON is not an object")
    return parsed


def _clean_label(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _clean_tags(value: Any, max_tags: int, max_length: int) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []

    tags: List[str] = []
    for item in value:
        if not isinstance(item, (str, int, float)) or isinstance(item, bool):
            continue
        tag = str(item).strip()[:max_length]
        if tag and tag not in tags:
            tags.append(tag)
        if len(tags) >= max_tags:
            break
    return tags


def normalize_categorization(
    payload: Dict[str, Any],
    max_tags: int = settings.CATEGORIZATION_MAX_TAGS,
    max_tag_length: int = settings.CATEGORIZATION_MAX_TAG_LENGTH,
) -> Categorization:
    """Validate a parsed reply; never trust the classifier's raw values."""
    raw_category = payload.get("category")
    category = Category.normalize(raw_category)
    if raw_category is not None and category is Category.OTHER and str(raw_category).strip().lower() != "other":
        logger.info(f"Classifier returned unknown category {raw_category!r}; using {Category.OTHER.value}")

    summary = payload.get("summary")
    summary = summary.strip() if isinstance(summary, str) and summary.strip() else None

    return Categorization(
        category=category,
        team=_clean_label(payload.get("team"), DEFAULT_TEAM),
        project=_clean_label(payload.get("project"), DEFAULT_PROJECT),
        tags=_clean_tags(payload.get("tags"), max_tags, max_tag_length),
        summary=summary,
    )


class LLMCategorizationGateway(ICategorizationGateway):
    """
    Asks the LLM for category, team, project, tags and summary.

    Any failure (transport, timeout, unparseable reply) returns the fixed
    fallback labels with degraded=True. Ingestion never fails because of it.
    """

    def __init__(self, llm: LLMService, timeout: float = settings.CATEGORIZATION_TIMEOUT_SECONDS):
        self.llm = llm
        self.timeout = timeout

    async def categorize(self, title: str, text: str) -> CategorizationOutcome:
        prompt = build_prompt(title, text)
        reason: Optional[str] = None
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(self.llm.generate, prompt, True, self.timeout),
                timeout=self.timeout,
            )
            result = normalize_categorization(extract_json_object(raw))
            logger.info(f"Categorized '{title}' as {result.category.value}")
            return CategorizationOutcome(result=result)
        except asyncio.TimeoutError:
            reason = f"timed out after {self.timeout}s"
        except GatewayError as e:
            reason = str(e)
        except ValueError as e:  # json.JSONDecodeError is a ValueError
            reason = f"unparseable response: {e}"
        except Exception as e:
            logger.error(f"Unexpected categorization error for '{title}': {e}", exc_info=True)
            reason = f"unexpected error: {e}"

        logger.warning(f"Categorization degraded for '{title}': {reason}")
        return CategorizationOutcome(result=Categorization.fallback(), degraded=True, reason=reason)
