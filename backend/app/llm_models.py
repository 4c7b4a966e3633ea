# backend/app/llm_models.py

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, List

from .errors import ConfigurationError

HF_INFERENCE_BASE = "https://api-inference.huggingface.co/models"


class Provider(str, Enum):
    HUGGINGFACE = "huggingface"
    GEMINI = "gemini"


class Task(str, Enum):
    IMAGE_TO_TEXT = "image-to-text"
    TEXT_GENERATION = "text-generation"


def _raw(prompt: str) -> str:
    return prompt


def _llama2_chat(prompt: str) -> str:
    return f"[INST] {prompt.strip()} [/INST]"


def _mistral_instruct(prompt: str) -> str:
    return f"<s>[INST] {prompt.strip()} [/INST]"


@dataclass(frozen=True)
class ModelSpec:
    model_id: str
    provider: Provider
    task: Task
    formatter: Callable[[str], str]
    max_new_tokens: int
    temperature: float
    top_p: float


class ModelChoice(str, Enum):
    """Models the pipeline can be pointed at, selected by tag in config."""

    BLIP2 = "blip2"
    LLAMA2_CHAT = "llama2-chat"
    MISTRAL_INSTRUCT = "mistral-instruct"
    FLAN_T5 = "flan-t5"
    GEMINI_FLASH = "gemini-flash"

    @property
    def spec(self) -> ModelSpec:
        return MODEL_SPECS[self]

    @property
    def provider(self) -> Provider:
        return self.spec.provider

    @property
    def task(self) -> Task:
        return self.spec.task

    @property
    def url(self) -> str:
        if self.provider is not Provider.HUGGINGFACE:
            raise ConfigurationError(f"{self.value} is not served by the Hugging Face inference API")
        return f"{HF_INFERENCE_BASE}/{self.spec.model_id}"

    def format_prompt(self, prompt: str) -> str:
        return self.spec.formatter(prompt)

    def parameters(self) -> dict:
        return {
            "max_new_tokens": self.spec.max_new_tokens,
            "temperature": self.spec.temperature,
            "top_p": self.spec.top_p,
            "do_sample": True,
        }

    @classmethod
    def from_tag(cls, tag: str) -> "ModelChoice":
        try:
            return cls(tag.strip().lower())
        except ValueError:
            known = ", ".join(m.value for m in cls)
            raise ConfigurationError(f"Unknown model tag '{tag}' (expected one of: {known})")

    @classmethod
    def from_tags(cls, tags: str, limit: int = 3) -> List["ModelChoice"]:
        choices = [cls.from_tag(t) for t in tags.split(",") if t.strip()]
        if not choices:
            raise ConfigurationError("No candidate models configured")
        return choices[:limit]


MODEL_SPECS = MappingProxyType(
    {
        ModelChoice.BLIP2: ModelSpec(
            model_id="Salesforce/blip2-opt-2.7b",
            provider=Provider.HUGGINGFACE,
            task=Task.IMAGE_TO_TEXT,
            formatter=_raw,
            max_new_tokens=150,
            temperature=0.7,
            top_p=0.9,
        ),
        ModelChoice.LLAMA2_CHAT: ModelSpec(
            model_id="meta-llama/Llama-2-7b-chat-hf",
            provider=Provider.HUGGINGFACE,
            task=Task.TEXT_GENERATION,
            formatter=_llama2_chat,
            max_new_tokens=300,
            temperature=0.3,
            top_p=0.7,
        ),
        ModelChoice.MISTRAL_INSTRUCT: ModelSpec(
            model_id="mistralai/Mistral-7B-Instruct-v0.2",
            provider=Provider.HUGGINGFACE,
            task=Task.TEXT_GENERATION,
            formatter=_mistral_instruct,
            max_new_tokens=300,
            temperature=0.3,
            top_p=0.7,
        ),
        ModelChoice.FLAN_T5: ModelSpec(
            model_id="google/flan-t5-large",
            provider=Provider.HUGGINGFACE,
            task=Task.TEXT_GENERATION,
            formatter=_raw,
            max_new_tokens=200,
            temperature=0.5,
            top_p=0.9,
        ),
        ModelChoice.GEMINI_FLASH: ModelSpec(
            model_id="gemini-2.0-flash",
            provider=Provider.GEMINI,
            task=Task.TEXT_GENERATION,
            formatter=_raw,
            max_new_tokens=400,
            temperature=0.3,
            top_p=0.8,
        ),
    }
)
