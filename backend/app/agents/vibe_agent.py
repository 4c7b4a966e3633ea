# backend/app/agents/vibe_agent.py

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..config import Settings
from ..hf_client import extract_json
from ..llm import complete
from ..logging_config import record_fallback
from ..models import VibeAnalysis
from .heuristic_agent import intelligent_vibe_analysis

log = logging.getLogger("vibe-agent")

VIBE_PROMPT = """Analyze this space description for cultural vibes and aesthetics: "{description}"

Task: Extract cultural and aesthetic information from this description and format as JSON.

Please identify:
- Primary aesthetic style (e.g., "modern minimalist", "vintage bohemian", "industrial chic")
- Secondary style elements
- Cultural context and meaning
- Aesthetic keywords
- Mood descriptors

Respond with only a JSON object in this exact format:
{{
  "primaryVibe": "main aesthetic style",
  "secondaryVibes": ["secondary", "style", "elements"],
  "culturalContext": "brief cultural meaning explanation",
  "aestheticKeywords": ["style", "design", "keywords"],
  "moodDescriptors": ["emotional", "mood", "words"]
}}"""

MAX_LIST_ITEMS = 6


def build_vibe_prompt(description: str) -> str:
    return VIBE_PROMPT.format(description=description.replace('"', "'"))


def normalize_list(value: Any) -> List[str]:
    """Coerce a model-supplied list (or comma string) into clean strings."""
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    return [str(x).strip() for x in value if str(x).strip()][:MAX_LIST_ITEMS]


def _vibe_from_json(raw: Dict[str, Any]) -> Optional[VibeAnalysis]:
    if not raw:
        return None

    primary = raw.get("primaryVibe")
    if not isinstance(primary, str) or not primary.strip():
        return None

    try:
        return VibeAnalysis(
            primary_vibe=primary.strip(),
            secondary_vibes=normalize_list(raw.get("secondaryVibes")),
            cultural_context=str(raw.get("culturalContext") or "").strip(),
            aesthetic_keywords=normalize_list(raw.get("aestheticKeywords")),
            mood_descriptors=normalize_list(raw.get("moodDescriptors")),
        )
    except ValidationError as e:
        log.warning("⚠️ Vibe JSON failed validation: %s", e)
        return None


def parse_vibe_analysis(model_text: str, description: str) -> VibeAnalysis:
    """
    Two-phase parse of language-model output.

    1) strict parse of the first {...} block into a VibeAnalysis;
    2) otherwise the keyword analyzer over the image description.
    """
    parsed = _vibe_from_json(extract_json(model_text))
    if parsed is not None:
        return parsed

    record_fallback("vibe_parse", "model output had no usable JSON")
    return intelligent_vibe_analysis(description)


async def run_vibe_agent(description: str, settings: Settings) -> VibeAnalysis:
    """
    Vibe agent: turns an image description into a structured VibeAnalysis.

    Model failures are absorbed here: the keyword analyzer stands in for
    the model, so this only raises on programming errors.
    """
    model = settings.vibe_model
    log.info("🎯 Vibe Agent started (%s)", model.value)

    try:
        text = await asyncio.to_thread(complete, model, build_vibe_prompt(description), settings)
    except Exception as e:
        record_fallback("vibe_model", e)
        return intelligent_vibe_analysis(description)

    vibe = parse_vibe_analysis(text, description)
    log.info("✅ Vibe Agent complete (primaryVibe=%s)", vibe.primary_vibe)
    return vibe
