from __future__ import annotations

import pytest

from backend.app.config import get_settings
from backend.app.errors import ConfigurationError
from backend.app.llm_models import ModelChoice, Provider


def test_model_choice_from_tag():
    assert ModelChoice.from_tag(" Llama2-Chat ") is ModelChoice.LLAMA2_CHAT
    with pytest.raises(ConfigurationError):
        ModelChoice.from_tag("gpt-17")


def test_model_choice_from_tags_keeps_three():
    choices = ModelChoice.from_tags("flan-t5, gemini-flash,llama2-chat,mistral-instruct")
    assert choices == [ModelChoice.FLAN_T5, ModelChoice.GEMINI_FLASH, ModelChoice.LLAMA2_CHAT]


def test_prompt_formatting_per_model():
    assert ModelChoice.LLAMA2_CHAT.format_prompt(" hi ") == "[INST] hi [/INST]"
    assert ModelChoice.MISTRAL_INSTRUCT.format_prompt("hi") == "<s>[INST] hi [/INST]"
    assert ModelChoice.FLAN_T5.format_prompt("hi") == "hi"
    assert ModelChoice.GEMINI_FLASH.provider is Provider.GEMINI
    assert ModelChoice.BLIP2.url.endswith("/Salesforce/blip2-opt-2.7b")


def test_settings_defaults(settings):
    assert settings.huggingface_api_key == "hf-test-key"
    assert settings.qloo_api_key is None
    assert settings.caption_model is ModelChoice.BLIP2
    assert settings.movie_analysis_models == (
        ModelChoice.LLAMA2_CHAT,
        ModelChoice.MISTRAL_INSTRUCT,
        ModelChoice.FLAN_T5,
    )
    assert settings.request_timeout == 30.0
    assert settings.rating_seed == 7
    assert settings.max_upload_bytes == 5 * 1024 * 1024


def test_settings_reject_bad_values(monkeypatch):
    monkeypatch.setenv("VIBE_MODEL", "nope")
    with pytest.raises(ConfigurationError):
        get_settings()

    monkeypatch.delenv("VIBE_MODEL")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "0")
    with pytest.raises(ConfigurationError):
        get_settings()


def test_missing_inference_key(monkeypatch):
    monkeypatch.delenv("HUGGINGFACE_API_KEY")
    with pytest.raises(ConfigurationError):
        get_settings().require_inference_key()


@pytest.mark.parametrize(
    "name, tag",
    [
        ("CAPTION_MODEL", "gemini-flash"),
        ("CAPTION_MODEL", "llama2-chat"),
        ("VIBE_MODEL", "blip2"),
        ("MOVIE_SUMMARY_MODEL", "blip2"),
        ("MOVIE_ANALYSIS_MODELS", "llama2-chat,blip2"),
    ],
)
def test_settings_reject_models_in_the_wrong_role(monkeypatch, name, tag):
    monkeypatch.setenv(name, tag)
    with pytest.raises(ConfigurationError, match=name):
        get_settings()


def test_gemini_is_accepted_for_text_roles(monkeypatch):
    monkeypatch.setenv("VIBE_MODEL", "gemini-flash")
    monkeypatch.setenv("MOVIE_ANALYSIS_MODELS", "gemini-flash,flan-t5")
    settings = get_settings()
    assert settings.vibe_model is ModelChoice.GEMINI_FLASH
    assert settings.movie_analysis_models == (ModelChoice.GEMINI_FLASH, ModelChoice.FLAN_T5)


def test_gemini_has_no_inference_url():
    with pytest.raises(ConfigurationError):
        ModelChoice.GEMINI_FLASH.url


def test_wrong_caption_model_is_a_config_error_without_calls(client, outbound_calls, monkeypatch):
    monkeypatch.setenv("CAPTION_MODEL", "gemini-flash")
    r = client.post("/api/analyze", json={"imageBase64": "QUJD"})
    assert r.status_code == 500
    assert r.json()["code"] == "CONFIG_ERROR"
    assert "CAPTION_MODEL" in r.json()["error"]
    assert outbound_calls == []
