from __future__ import annotations

import asyncio
import base64
import json

import pytest
import requests

from backend.app import main
from backend.app.agents import movie_agent
from backend.app.errors import InferenceError
from backend.app.fallbacks import DEFAULT_IMAGE_DESCRIPTION
from backend.app.hf_client import caption_image
from backend.app.llm_models import ModelChoice
from backend.app.models import MovieVibeResponse, VibeValidationResponse
from conftest import FakeResponse

CATEGORIES = {"restaurants", "music", "activities", "experiences"}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


# ---------------- input / configuration errors ----------------


def test_missing_image_is_400(client, outbound_calls):
    r = client.post("/api/analyze", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "No image provided", "code": "MISSING_INPUT"}
    assert outbound_calls == []


def test_missing_credential_is_500_without_outbound_calls(client, outbound_calls, monkeypatch):
    monkeypatch.delenv("HUGGINGFACE_API_KEY")
    r = client.post("/api/analyze", json={"imageBase64": "aGVsbG8="})
    assert r.status_code == 500
    body = r.json()
    assert body["code"] == "CONFIG_ERROR"
    assert "Hugging Face" in body["error"]
    assert outbound_calls == []


@pytest.mark.parametrize("payload", [{}, {"movieName": ""}, {"movieName": "   "}])
def test_empty_movie_name_is_400_before_any_call(client, outbound_calls, payload):
    r = client.post("/api/analyze-movie", json=payload)
    assert r.status_code == 400
    assert r.json()["code"] == "MISSING_INPUT"
    assert outbound_calls == []


def test_movie_missing_credential_is_500(client, outbound_calls, monkeypatch):
    monkeypatch.delenv("HUGGINGFACE_API_KEY")
    r = client.post("/api/analyze-movie", json={"movieName": "Parasite"})
    assert r.status_code == 500
    assert r.json()["code"] == "CONFIG_ERROR"
    assert outbound_calls == []


def test_unexpected_failure_is_wrapped(client, monkeypatch, outbound_calls):
    def explode(*args, **kwargs):
        raise RuntimeError("kaboom")

    monkeypatch.setattr("backend.app.main.build_vibe_parameters", explode)
    r = client.post("/api/analyze-movie", json={"movieName": "Parasite"})
    assert r.status_code == 500
    assert r.json() == {"error": "Analysis failed", "details": "kaboom", "code": "ANALYSIS_ERROR"}


@pytest.mark.parametrize("path", ["/api/analyze", "/api/analyze-movie"])
@pytest.mark.parametrize(
    "body",
    [{"imageBase64": 123, "movieName": 42}, {"imageBase64": ["a"], "movieName": {"x": 1}}],
)
def test_wrong_typed_body_is_400(client, outbound_calls, path, body):
    r = client.post(path, json=body)
    assert r.status_code == 400
    payload = r.json()
    assert payload["error"] == "Invalid request body"
    assert payload["code"] == "MISSING_INPUT"
    assert "detail" not in payload
    assert outbound_calls == []


@pytest.mark.parametrize("path", ["/api/analyze", "/api/analyze-movie"])
def test_non_json_body_is_400(client, outbound_calls, path):
    r = client.post(path, content=b"not json at all", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert set(r.json()) <= {"error", "details", "code"}
    assert r.json()["code"] == "MISSING_INPUT"
    assert outbound_calls == []


# ---------------- offline fallbacks ----------------


def test_parasite_offline_returns_intelligent_fallback(client, outbound_calls, monkeypatch):
    monkeypatch.setenv("QLOO_API_KEY", "qloo-key")
    r = client.post("/api/analyze-movie", json={"movieName": "Parasite"})
    assert r.status_code == 200

    body = r.json()
    genres = body["movieAnalysis"]["genres"]
    assert "thriller" in genres or "drama" in genres
    titles = [m["title"] for m in body["similarMovies"]]
    assert any(t and t != "Parasite" for t in titles)
    assert "Parasite" not in titles
    assert body["vibeParameters"]["entityType"] == "urn:entity:movie"
    assert isinstance(body["processingTime"], int)

    # summary model + three analysis candidates + one Qloo lookup, each tried once
    assert len([c for c in outbound_calls if c["method"] == "POST"]) == 4
    assert len([c for c in outbound_calls if c["method"] == "GET"]) == 1
    assert all(c["timeout"] == 30.0 for c in outbound_calls)


def test_image_with_failed_caption_still_returns_full_response(client, outbound_calls, png_bytes):
    r = client.post("/api/analyze", json={"imageBase64": base64.b64encode(png_bytes).decode()})
    assert r.status_code == 200

    body = r.json()
    assert body["imageDescription"]
    assert isinstance(body["vibeAnalysis"]["primaryVibe"], str)
    assert body["vibeAnalysis"]["primaryVibe"]
    assert len(body["recommendations"]) == 4
    assert {rec["category"] for rec in body["recommendations"]} == CATEGORIES
    for rec in body["recommendations"]:
        for item in rec["items"]:
            assert 0.0 <= item["confidence"] <= 1.0


def test_data_url_prefix_is_stripped(client, monkeypatch):
    sent = []

    def fake_post(url, headers=None, json=None, timeout=None):
        sent.append(json)
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(requests, "post", fake_post)
    r = client.post("/api/analyze", json={"imageBase64": "data:image/png;base64,QUJD"})
    assert r.status_code == 200
    assert sent[0]["inputs"] == "QUJD"


# ---------------- happy paths ----------------


def test_image_pipeline_uses_model_output(client, monkeypatch):
    caption = "a loft with exposed brick, metal beams and concrete floors"
    vibe = {
        "primaryVibe": "industrial chic",
        "secondaryVibes": ["loft", "raw"],
        "culturalContext": "Warehouse conversions in post-industrial cities.",
        "aestheticKeywords": ["metal", "brick"],
        "moodDescriptors": ["edgy", "creative"],
    }

    def fake_post(url, headers=None, json=None, timeout=None):
        assert headers["Authorization"] == "Bearer hf-test-key"
        if url == ModelChoice.BLIP2.url:
            return FakeResponse([{"generated_text": caption}])
        if url == ModelChoice.LLAMA2_CHAT.url:
            assert json["inputs"].startswith("[INST]")
            assert json["parameters"]["return_full_text"] is False
            return FakeResponse([{"generated_text": "Here it is: " + _json_dumps(vibe)}])
        raise AssertionError(url)

    monkeypatch.setattr(requests, "post", fake_post)
    r = client.post("/api/analyze", json={"imageBase64": "QUJD"})
    assert r.status_code == 200

    body = r.json()
    assert body["imageDescription"] == caption
    assert body["vibeAnalysis"] == vibe
    names = [item["name"] for rec in body["recommendations"] for item in rec["items"]]
    assert "Industrial chic Bistro" in names


def test_caption_error_body_falls_back(client, monkeypatch):
    def fake_post(url, headers=None, json=None, timeout=None):
        if url == ModelChoice.BLIP2.url:
            return FakeResponse({"error": "Model is currently loading"})
        return FakeResponse({"error": "overloaded"}, status_code=503)

    monkeypatch.setattr(requests, "post", fake_post)
    r = client.post("/api/analyze", json={"imageBase64": "QUJD"})
    assert r.status_code == 200
    assert r.json()["imageDescription"] == (
        "A space with modern aesthetic elements and contemporary design features"
    )


def test_movie_candidates_are_tried_in_order(client, monkeypatch, outbound_calls):
    tried = []

    def fake_complete(model, prompt, settings):
        tried.append(model)
        if model is ModelChoice.LLAMA2_CHAT:
            return '{"summary": "too short"}'
        return _json_dumps(
            {
                "summary": "A sweeping space odyssey about love across time.",
                "themes": ["love", "time"],
                "genres": ["Sci-Fi", "Drama"],
                "culturalKeywords": ["nolan"],
            }
        )

    monkeypatch.setattr(movie_agent, "complete", fake_complete)
    r = client.post("/api/analyze-movie", json={"movieName": "Some Space Film"})
    assert r.status_code == 200

    body = r.json()
    # the summary call counts too; the analysis stops at the second candidate
    assert tried == [ModelChoice.FLAN_T5, ModelChoice.LLAMA2_CHAT, ModelChoice.MISTRAL_INSTRUCT]
    assert body["movieAnalysis"]["genres"] == ["sci-fi", "drama"]
    assert body["similarMovies"]


# ---------------- serialization ----------------


def test_image_response_round_trips(client, outbound_calls):
    r = client.post("/api/analyze", json={"imageBase64": "QUJD"})
    original = VibeValidationResponse.model_validate(r.json())
    again = VibeValidationResponse.model_validate_json(original.model_dump_json(by_alias=True))
    assert again == original
    assert again.model_dump(by_alias=True) == original.model_dump(by_alias=True)


def test_movie_response_round_trips(client, outbound_calls):
    r = client.post("/api/analyze-movie", json={"movieName": "Interstellar"})
    original = MovieVibeResponse.model_validate(r.json())
    again = MovieVibeResponse.model_validate_json(original.model_dump_json(by_alias=True))
    assert again == original


def test_metrics_count_fallbacks(client, outbound_calls):
    client.post("/api/analyze", json={"imageBase64": "QUJD"})
    snapshot = client.get("/metrics").json()
    assert snapshot["requests_image"] >= 1
    assert snapshot["fallback_vision"] >= 1


# fake_post takes a `json` keyword, which shadows the module inside it
def _json_dumps(value):
    return json.dumps(value)


# ---------------- timeouts ----------------


def test_stage_timeout_falls_back(client, outbound_calls, monkeypatch):
    async def stuck(image_b64, settings):
        await asyncio.sleep(5)
        return "never returned"

    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "0.05")
    monkeypatch.setattr(main, "STAGE_GRACE_SECONDS", 0)
    monkeypatch.setattr(main, "run_vision_agent", stuck)

    r = client.post("/api/analyze", json={"imageBase64": "QUJD"})
    assert r.status_code == 200
    assert r.json()["imageDescription"] == DEFAULT_IMAGE_DESCRIPTION
    assert {rec["category"] for rec in r.json()["recommendations"]} == CATEGORIES


def test_http_timeout_is_an_ordinary_failure(client, monkeypatch):
    seen = []

    def slow_post(url, headers=None, json=None, timeout=None):
        seen.append(timeout)
        raise requests.Timeout("read timed out")

    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setattr(requests, "post", slow_post)

    with pytest.raises(InferenceError, match="timed out"):
        caption_image("QUJD", ModelChoice.BLIP2, "hf-test-key", 2.5)

    r = client.post("/api/analyze", json={"imageBase64": "QUJD"})
    assert r.status_code == 200
    assert r.json()["imageDescription"] == DEFAULT_IMAGE_DESCRIPTION
    assert r.json()["vibeAnalysis"]["primaryVibe"]
    assert set(seen) == {2.5}
