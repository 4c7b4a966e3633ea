import logging
from functools import lru_cache

from google import genai
from google.genai import types

from .errors import InferenceError
from .llm_models import ModelChoice

log = logging.getLogger("vibe-agent")


@lru_cache(maxsize=4)
def _client(api_key: str, timeout_ms: int) -> genai.Client:
    # One long-lived client per key/timeout pair, reused across requests.
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=timeout_ms),
    )


def generate_text(
    prompt: str, model: ModelChoice, api_key: str | None, timeout: float = 30.0
) -> str:
    """
    Text-only Gemini call. Always returns a string or raises InferenceError.
    """
    if not api_key:
        raise InferenceError("Missing GEMINI_API_KEY or GOOGLE_API_KEY for Gemini model")

    client = _client(api_key, int(timeout * 1000))
    try:
        resp = client.models.generate_content(
            model=model.spec.model_id,
            contents=[{"text": prompt}],
            config=types.GenerateContentConfig(
                temperature=model.spec.temperature,
                top_p=model.spec.top_p,
                max_output_tokens=model.spec.max_new_tokens,
            ),
        )
    except Exception as e:
        raise InferenceError(f"Gemini request failed: {e}") from e

    text = getattr(resp, "text", None)
    if not text:
        raise InferenceError("Empty Gemini response")
    return text.strip()
