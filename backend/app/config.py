# backend/app/config.py

import os
from dataclasses import dataclass
from typing import List, Optional

from .errors import ConfigurationError
from .llm_models import ModelChoice, Provider, Task

DEFAULT_QLOO_URL = "https://api.qloo.com/v2/insights/"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'")


def _env_int(name: str) -> Optional[int]:
    raw = _env(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")


def _check_role(name: str, model: ModelChoice, task: Task) -> ModelChoice:
    if model.task is not task:
        raise ConfigurationError(f"{name}={model.value} is not a {task.value} model")
    if task is Task.IMAGE_TO_TEXT and model.provider is not Provider.HUGGINGFACE:
        raise ConfigurationError(f"{name}={model.value} cannot caption images")
    return model


def _env_model(name: str, default: str, task: Task) -> ModelChoice:
    return _check_role(name, ModelChoice.from_tag(_env(name, default)), task)


@dataclass(frozen=True)
class Settings:
    huggingface_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    qloo_api_key: Optional[str] = None
    qloo_api_url: str = DEFAULT_QLOO_URL
    qloo_location: str = "New York"
    caption_model: ModelChoice = ModelChoice.BLIP2
    vibe_model: ModelChoice = ModelChoice.LLAMA2_CHAT
    movie_summary_model: ModelChoice = ModelChoice.FLAN_T5
    movie_analysis_models: tuple = (
        ModelChoice.LLAMA2_CHAT,
        ModelChoice.MISTRAL_INSTRUCT,
        ModelChoice.FLAN_T5,
    )
    request_timeout: float = 30.0
    rating_jitter: float = 0.3
    rating_seed: Optional[int] = None
    max_upload_mb: float = 5.0

    def require_inference_key(self) -> str:
        if not self.huggingface_api_key:
            raise ConfigurationError("Missing Hugging Face API key")
        return self.huggingface_api_key

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)


def get_settings() -> Settings:
    """
    Build settings from the environment.

    Read per request (not cached) so a changed .env or a test's
    monkeypatched environment takes effect immediately.
    """
    analysis_models: List[ModelChoice] = [
        _check_role("MOVIE_ANALYSIS_MODELS", m, Task.TEXT_GENERATION)
        for m in ModelChoice.from_tags(
            _env("MOVIE_ANALYSIS_MODELS", "llama2-chat,mistral-instruct,flan-t5")
        )
    ]
    timeout = _env_float("REQUEST_TIMEOUT_SECONDS", 30.0)
    if timeout <= 0:
        raise ConfigurationError("REQUEST_TIMEOUT_SECONDS must be positive")

    return Settings(
        huggingface_api_key=_env("HUGGINGFACE_API_KEY"),
        gemini_api_key=_env("GEMINI_API_KEY") or _env("GOOGLE_API_KEY"),
        qloo_api_key=_env("QLOO_API_KEY"),
        qloo_api_url=_env("QLOO_API_URL", DEFAULT_QLOO_URL),
        qloo_location=_env("QLOO_LOCATION", "New York"),
        caption_model=_env_model("CAPTION_MODEL", "blip2", Task.IMAGE_TO_TEXT),
        vibe_model=_env_model("VIBE_MODEL", "llama2-chat", Task.TEXT_GENERATION),
        movie_summary_model=_env_model("MOVIE_SUMMARY_MODEL", "flan-t5", Task.TEXT_GENERATION),
        movie_analysis_models=tuple(analysis_models),
        request_timeout=timeout,
        rating_jitter=_env_float("MOVIE_RATING_JITTER", 0.3),
        rating_seed=_env_int("MOVIE_RATING_SEED"),
        max_upload_mb=_env_float("MAX_UPLOAD_MB", 5.0),
    )
