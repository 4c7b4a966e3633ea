import re
import json
import logging
from typing import Any, Dict

import requests

from .errors import InferenceError
from .llm_models import ModelChoice

log = logging.getLogger("vibe-agent")

UNREADABLE_CAPTION = "Unable to analyze image"
UNEXPECTED_CAPTION = "A space requiring cultural analysis"


# --- Helpers ---

def extract_json(text: str) -> Dict[str, Any]:
    """
    Find and parse the first brace-delimited JSON block in model output.
    Returns {} if there is none or it does not parse to an object.
    """
    if not text:
        return {}
    match = re.search(r"\{[\s\S]*\}", text)
    if not match:
        return {}
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _post(model: ModelChoice, payload: Dict[str, Any], api_key: str, timeout: float) -> Any:
    try:
        response = requests.post(
            model.url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise InferenceError(f"{model.value} request failed: {e}") from e

    log.info("📡 HF %s response status: %s", model.value, response.status_code)

    if not response.ok:
        raise InferenceError(
            f"Hugging Face API error: {response.status_code} - {response.text[:300]}"
        )

    try:
        return response.json()
    except ValueError as e:
        raise InferenceError(f"{model.value} returned a non-JSON body") from e


# --- Image caption call ---

def caption_image(image_b64: str, model: ModelChoice, api_key: str, timeout: float) -> str:
    """
    Ask an image-to-text model for a caption of a base64 image.
    Raises InferenceError on transport, status or error-body failures.
    """
    result = _post(
        model,
        {"inputs": image_b64, "parameters": model.parameters()},
        api_key,
        timeout,
    )

    if isinstance(result, list) and result:
        first = result[0] if isinstance(result[0], dict) else {}
        return (
            first.get("generated_text")
            or first.get("caption")
            or first.get("text")
            or UNREADABLE_CAPTION
        )

    if isinstance(result, dict) and result.get("generated_text"):
        return result["generated_text"]

    if isinstance(result, dict) and result.get("error"):
        raise InferenceError(f"Hugging Face error: {result['error']}")

    log.warning("⚠️ Unexpected HF caption format, using generic caption")
    return UNEXPECTED_CAPTION


# --- Text generation call ---

def generate_text(prompt: str, model: ModelChoice, api_key: str, timeout: float) -> str:
    """
    Run a text-generation model on an already formatted prompt.
    Returns the generated text only (never the echoed prompt).
    """
    params = model.parameters()
    params["return_full_text"] = False
    result = _post(model, {"inputs": prompt, "parameters": params}, api_key, timeout)

    if isinstance(result, list) and result and isinstance(result[0], dict):
        return str(result[0].get("generated_text") or "")

    if isinstance(result, dict):
        if result.get("error"):
            raise InferenceError(f"Hugging Face error: {result['error']}")
        return str(result.get("generated_text") or "")

    return ""
