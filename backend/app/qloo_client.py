import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from .errors import RecommendationServiceError

log = logging.getLogger("vibe-agent")

PLACE_ENTITY = "urn:entity:place"
MOVIE_ENTITY = "urn:entity:movie"


def fetch_insights(
    entity_type: str,
    query_terms: Sequence[str],
    keywords: Sequence[str],
    api_key: str,
    url: str,
    timeout: float,
    location: Optional[str] = None,
    limit: int = 3,
) -> List[Dict[str, Any]]:
    """
    Query the Qloo insights endpoint and return its raw entity list.

    The free-text query is the category terms plus at most two vibe
    keywords, which keeps the URL short enough for the API.
    """
    search = " ".join(list(query_terms) + list(keywords)[:2])
    params: Dict[str, Any] = {
        "filter.type": entity_type,
        "query": search,
        "limit": limit,
    }
    if location and entity_type == PLACE_ENTITY:
        params["filter.location.query"] = location

    log.info("🌐 Qloo lookup type=%s query=%r", entity_type, search)

    try:
        response = requests.get(
            url,
            params=params,
            headers={"X-Api-Key": api_key, "Content-Type": "application/json"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise RecommendationServiceError(f"Qloo request failed: {e}") from e

    log.info("📡 Qloo API response status: %s", response.status_code)

    if not response.ok:
        raise RecommendationServiceError(
            f"Qloo API error: {response.status_code} - {response.text[:300]}"
        )

    try:
        data = response.json()
    except ValueError as e:
        raise RecommendationServiceError("Qloo returned a non-JSON body") from e

    entities = (data.get("results") or {}).get("entities") if isinstance(data, dict) else None
    return [e for e in entities or [] if isinstance(e, dict)]
