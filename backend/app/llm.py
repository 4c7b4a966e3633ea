# backend/app/llm.py

from . import gemini_client, hf_client
from .config import Settings
from .llm_models import ModelChoice, Provider


def complete(model: ModelChoice, prompt: str, settings: Settings) -> str:
    """Format ``prompt`` for ``model`` and send it to the model's provider."""
    formatted = model.format_prompt(prompt)

    if model.provider is Provider.GEMINI:
        return gemini_client.generate_text(
            formatted,
            model,
            settings.gemini_api_key,
            timeout=settings.request_timeout,
        )

    return hf_client.generate_text(
        formatted,
        model,
        settings.require_inference_key(),
        settings.request_timeout,
    )
