# backend/app/agents/similar_movies_agent.py

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Dict, List, Optional

from ..config import Settings
from ..fallbacks import fallback_similar_movies, movie_match_score, rating_rng
from ..logging_config import record_fallback
from ..models import MovieAnalysis, MovieVibeParameters, QlooData, SimilarMovie
from ..qloo_client import MOVIE_ENTITY, fetch_insights
from .heuristic_agent import normalize_title

log = logging.getLogger("vibe-agent")

MAX_AUDIENCES = 4
MAX_TAGS = 10
MAX_SIMILAR = 6
DEFAULT_AUDIENCE = "general audiences"

GENRE_AUDIENCES = MappingProxyType(
    {
        "thriller": ("suspense seekers", "puzzle lovers"),
        "drama": ("character-study fans", "awards-season viewers"),
        "dark comedy": ("fans of satire", "cult film lovers"),
        "sci-fi": ("sci-fi enthusiasts", "futurists"),
        "horror": ("horror fans", "thrill seekers"),
        "comedy": ("comedy lovers", "feel-good viewers"),
        "romance": ("romantics", "date-night viewers"),
        "musical": ("music lovers", "theatre fans"),
        "action": ("action junkies", "blockbuster fans"),
        "fantasy": ("fantasy readers", "world-building fans"),
        "animation": ("animation fans", "families"),
        "mystery": ("armchair detectives", "puzzle lovers"),
        "adventure": ("adventure seekers", "families"),
        "crime": ("true-crime fans", "neo-noir devotees"),
        "war": ("history buffs", "classic film fans"),
    }
)


def build_vibe_parameters(analysis: MovieAnalysis) -> MovieVibeParameters:
    """Derive Qloo lookup parameters from a MovieAnalysis."""
    audiences = list(
        dict.fromkeys(a for g in analysis.genres for a in GENRE_AUDIENCES.get(g.lower(), ()))
    )[:MAX_AUDIENCES]
    tags = list(
        dict.fromkeys(
            t.lower() for t in analysis.genres + analysis.themes + analysis.cultural_keywords
        )
    )[:MAX_TAGS]
    return MovieVibeParameters(
        audiences=audiences or [DEFAULT_AUDIENCE],
        tags=tags,
        entity_type=MOVIE_ENTITY,
    )


def _year(props: Dict[str, Any]) -> Optional[int]:
    raw = props.get("release_year") or (props.get("release_date") or "")[:4]
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _rating(props: Dict[str, Any]) -> Optional[float]:
    try:
        return round(float(props.get("rating")), 1)
    except (TypeError, ValueError):
        return None


def transform_movie_entity(entity: Dict[str, Any], title: str, params: MovieVibeParameters) -> SimilarMovie:
    """Map a raw Qloo movie entity onto a SimilarMovie."""
    props = entity.get("properties") or {}
    tags = entity.get("tags") or []
    names = [t.get("name") for t in tags if isinstance(t, dict) and t.get("name")]
    names += [k.get("name") for k in props.get("keywords") or [] if isinstance(k, dict) and k.get("name")]

    wanted = set(params.tags)
    shared = list(dict.fromkeys(n.lower() for n in names if n.lower() in wanted))

    name = entity.get("name") or "Untitled"
    if shared:
        reason = f"Shares {', '.join(shared[:3])} with {title}"
    else:
        reason = f"Recommended by taste data for fans of {title}"

    return SimilarMovie(
        title=name,
        description=props.get("description") or "A film with a similar cultural vibe",
        year=_year(props),
        rating=_rating(props),
        match_score=movie_match_score(len(shared)),
        reason=reason,
        shared_elements=shared,
        qloo_data=QlooData(entity_id=entity.get("entity_id"), type=entity.get("type")),
    )


def _lookup(title: str, params: MovieVibeParameters, settings: Settings) -> List[SimilarMovie]:
    entities = fetch_insights(
        params.entity_type,
        params.tags[:3],
        [],
        api_key=settings.qloo_api_key,
        url=settings.qloo_api_url,
        timeout=settings.request_timeout,
        limit=MAX_SIMILAR + 1,
    )
    own = normalize_title(title)
    movies = [
        transform_movie_entity(e, title, params)
        for e in entities
        if e.get("name") and normalize_title(e["name"]) != own
    ]
    movies.sort(key=lambda m: m.match_score, reverse=True)
    return movies[:MAX_SIMILAR]


async def run_similar_movies_agent(
    title: str,
    analysis: MovieAnalysis,
    params: MovieVibeParameters,
    settings: Settings,
) -> List[SimilarMovie]:
    """
    Similar movies from Qloo, or from the curated tables when there is no
    key, the lookup fails, or it returns nothing besides the input title.
    """
    if settings.qloo_api_key:
        try:
            log.info("🔍 Fetching similar movies from Qloo...")
            movies = await asyncio.to_thread(_lookup, title, params, settings)
            if movies:
                log.info("✅ Got %d similar movies", len(movies))
                return movies
            record_fallback("similar_movies", "Qloo returned no usable entities")
        except Exception as e:
            record_fallback("similar_movies", e)
    else:
        record_fallback("similar_movies", "no Qloo API key")

    return fallback_similar_movies(
        title,
        analysis,
        rng=rating_rng(settings),
        jitter=settings.rating_jitter,
    )
