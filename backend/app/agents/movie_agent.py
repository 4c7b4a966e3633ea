# backend/app/agents/movie_agent.py

import asyncio
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..config import Settings
from ..errors import InferenceError
from ..hf_client import extract_json
from ..llm import complete
from ..logging_config import record_fallback
from ..models import MovieAnalysis
from .heuristic_agent import intelligent_movie_analysis
from .vibe_agent import normalize_list

log = logging.getLogger("vibe-agent")

MIN_SUMMARY_LENGTH = 20

SUMMARY_PROMPT = """Describe the movie "{title}" in three to four sentences.
Cover the premise, the tone, the main themes and the genre.
Do not include spoilers."""

MOVIE_ANALYSIS_PROMPT = """You are a film critic and cultural analyst.

Movie: "{title}"
Background: {description}

Analyze the movie's vibe and respond with only a JSON object in this exact format:
{{
  "summary": "two sentence summary of the movie and its feel",
  "themes": ["core", "themes"],
  "genres": ["lowercase", "genres"],
  "culturalKeywords": ["cultural", "aesthetic", "keywords"]
}}"""


def build_summary_prompt(title: str) -> str:
    return SUMMARY_PROMPT.format(title=title.replace('"', "'"))


def build_movie_analysis_prompt(title: str, description: str) -> str:
    return MOVIE_ANALYSIS_PROMPT.format(
        title=title.replace('"', "'"),
        description=description.strip() or "None",
    )


def _movie_from_json(raw: Dict[str, Any]) -> Optional[MovieAnalysis]:
    summary = raw.get("summary") if raw else None
    if not isinstance(summary, str) or len(summary.strip()) <= MIN_SUMMARY_LENGTH:
        return None

    genres = [g.lower() for g in normalize_list(raw.get("genres"))]
    try:
        return MovieAnalysis(
            summary=summary.strip(),
            themes=normalize_list(raw.get("themes")),
            genres=genres,
            cultural_keywords=normalize_list(raw.get("culturalKeywords")),
        )
    except ValidationError as e:
        log.warning("⚠️ Movie JSON failed validation: %s", e)
        return None


def parse_movie_analysis(model_text: str) -> Optional[MovieAnalysis]:
    """
    Strict parse of the first {...} block in model output.

    Returns None unless the block carries a summary longer than
    MIN_SUMMARY_LENGTH characters.
    """
    return _movie_from_json(extract_json(model_text))


async def run_movie_summary_agent(title: str, settings: Settings) -> str:
    """Stage 1: free-text description of the movie. Raises on failure."""
    model = settings.movie_summary_model
    log.info("🎬 Summarizing %r with %s", title, model.value)

    text = await asyncio.to_thread(complete, model, build_summary_prompt(title), settings)
    text = (text or "").strip()
    if not text:
        raise InferenceError(f"{model.value} returned an empty summary")

    log.info("✅ Movie description: %s", text[:200])
    return text


async def run_movie_analysis_agent(title: str, description: str, settings: Settings) -> MovieAnalysis:
    """
    Stage 2: structured MovieAnalysis.

    Candidates are tried in configured order; the first whose parsed
    summary is long enough wins. If none does, the built-in analysis is
    used, so this never raises for model failures.
    """
    prompt = build_movie_analysis_prompt(title, description)

    for model in settings.movie_analysis_models:
        try:
            log.info("🧠 Trying %s for movie analysis", model.value)
            text = await asyncio.to_thread(complete, model, prompt, settings)
        except Exception as e:
            log.warning("⚠️ %s failed: %s", model.value, e)
            continue

        analysis = parse_movie_analysis(text)
        if analysis is not None:
            log.info("✅ Movie analysis from %s (genres=%s)", model.value, analysis.genres)
            return analysis
        log.warning("⚠️ %s gave no usable analysis", model.value)

    record_fallback("movie_analysis", "no candidate model produced a usable analysis")
    return intelligent_movie_analysis(title, description)
