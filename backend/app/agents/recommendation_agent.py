# backend/app/agents/recommendation_agent.py

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Tuple

from ..config import Settings
from ..fallbacks import fallback_category_items, fallback_recommendations
from ..logging_config import record_fallback
from ..models import QlooData, Recommendation, RecommendationItem, VibeAnalysis
from ..qloo_client import PLACE_ENTITY, fetch_insights

log = logging.getLogger("vibe-agent")

MAX_ITEMS_PER_CATEGORY = 2
MAX_ENTITY_KEYWORDS = 3

# (category, entity type, query terms) looked up on Qloo.
QLOO_CATEGORIES: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("restaurants", PLACE_ENTITY, ("restaurant", "dining")),
    ("experiences", PLACE_ENTITY, ("venue", "attraction")),
)

# Always produced by the fallback generator.
LOCAL_CATEGORIES: Tuple[str, ...] = ("music", "activities")


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def entity_keywords(entity: Dict[str, Any]) -> List[str]:
    props = entity.get("properties") or {}
    names = []
    for k in (props.get("keywords") or [])[:MAX_ENTITY_KEYWORDS]:
        name = k.get("name") if isinstance(k, dict) else k
        if name:
            names.append(str(name))
    return names


def keyword_matches(keywords: List[str], vibe_keywords: List[str]) -> List[str]:
    """Entity keywords that contain, or are contained in, a vibe keyword."""
    vibe_lower = [v.lower() for v in vibe_keywords]
    return [
        k for k in keywords
        if any(k.lower() in v or v in k.lower() for v in vibe_lower)
    ]


def place_confidence(match_count: int, rating: float) -> float:
    return min(0.95, 0.6 + match_count * 0.1 + rating * 0.05)


def match_reason(name: str, primary_vibe: str, matches: List[str], rating: float) -> str:
    joined = ", ".join(matches)
    if matches and rating >= 4:
        return f"{name} perfectly captures the {primary_vibe} aesthetic with highly-rated {joined} elements"
    if matches:
        return f"{name} aligns with your {primary_vibe} vibe through its {joined} characteristics"
    if rating >= 4:
        return f"{name} is a highly-rated venue that complements the {primary_vibe} cultural sensibility"
    return f"{name} matches the {primary_vibe} aesthetic and cultural context"


def transform_entity(entity: Dict[str, Any], vibe: VibeAnalysis) -> RecommendationItem:
    """Map a raw Qloo entity onto a RecommendationItem scored against ``vibe``."""
    props = entity.get("properties") or {}
    name = entity.get("name") or "Recommended Item"
    description = props.get("description") or "A recommendation that matches your vibe"
    address = props.get("address") or ""
    rating = _as_float(props.get("business_rating"))

    keywords = entity_keywords(entity)
    matches = keyword_matches(keywords, vibe.aesthetic_keywords)

    return RecommendationItem(
        id=str(entity.get("entity_id") or uuid.uuid4().hex),
        name=name,
        description=f"{description} Located at {address}" if address else description,
        reason=match_reason(name, vibe.primary_vibe, matches, rating),
        confidence=place_confidence(len(matches), rating),
        tags=keywords,
        rating=rating,
        website=props.get("website") or None,
        qloo_data=QlooData(
            entity_id=entity.get("entity_id"),
            type=entity.get("type"),
            subtype=entity.get("subtype"),
        ),
    )


def _fetch_category(
    entity_type: str, terms: Tuple[str, ...], vibe: VibeAnalysis, settings: Settings
) -> List[RecommendationItem]:
    entities = fetch_insights(
        entity_type,
        terms,
        vibe.aesthetic_keywords,
        api_key=settings.qloo_api_key,
        url=settings.qloo_api_url,
        timeout=settings.request_timeout,
        location=settings.qloo_location,
    )
    return [transform_entity(e, vibe) for e in entities][:MAX_ITEMS_PER_CATEGORY]


async def run_recommendation_agent(vibe: VibeAnalysis, settings: Settings) -> List[Recommendation]:
    """
    One Recommendation per category.

    Without a Qloo key every category is generated locally. With one,
    each Qloo-backed category falls back on its own when its lookup fails.
    """
    if not settings.qloo_api_key:
        record_fallback("recommendations", "no Qloo API key")
        return fallback_recommendations(vibe)

    recommendations: List[Recommendation] = []
    for category, entity_type, terms in QLOO_CATEGORIES:
        try:
            log.info("🔍 Fetching %s from Qloo...", category)
            items = await asyncio.to_thread(_fetch_category, entity_type, terms, vibe, settings)
            log.info("✅ Got %d %s recommendations", len(items), category)
        except Exception as e:
            record_fallback(f"recommendations_{category}", e)
            items = fallback_category_items(category, vibe)
        if not items:
            record_fallback(f"recommendations_{category}", "Qloo returned no entities")
            items = fallback_category_items(category, vibe)
        recommendations.append(Recommendation(category=category, items=items))

    for category in LOCAL_CATEGORIES:
        recommendations.append(
            Recommendation(category=category, items=fallback_category_items(category, vibe))
        )

    return recommendations
