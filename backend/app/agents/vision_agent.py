# backend/app/agents/vision_agent.py

import asyncio
import logging

from ..config import Settings
from ..errors import InferenceError
from ..hf_client import caption_image

log = logging.getLogger("vibe-agent")


async def run_vision_agent(image_b64: str, settings: Settings) -> str:
    """
    Vision agent: caption the uploaded image with the configured
    image-to-text model.

    Raises on any failure; the pipeline substitutes a generic description.
    """
    model = settings.caption_model
    log.info("🔍 Calling %s for an image caption...", model.spec.model_id)

    # Run the blocking HTTP call in a worker thread so the caller can time out
    description = await asyncio.to_thread(
        caption_image,
        image_b64,
        model,
        settings.require_inference_key(),
        settings.request_timeout,
    )

    description = str(description).strip()
    if not description:
        raise InferenceError("Caption model returned an empty description")
    log.info("✅ Extracted description: %s", description[:200])
    return description
