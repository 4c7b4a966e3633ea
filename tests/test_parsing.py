from __future__ import annotations

import json

from backend.app.agents.heuristic_agent import intelligent_vibe_analysis
from backend.app.agents.movie_agent import build_movie_analysis_prompt, parse_movie_analysis
from backend.app.agents.vibe_agent import build_vibe_prompt, normalize_list, parse_vibe_analysis
from backend.app.hf_client import extract_json

GOOD_VIBE = {
    "primaryVibe": "industrial chic",
    "secondaryVibes": ["loft", "raw"],
    "culturalContext": "Post-industrial reuse of warehouse space.",
    "aestheticKeywords": ["metal", "brick"],
    "moodDescriptors": ["edgy", "creative"],
}


def test_extract_json_finds_embedded_object():
    text = "Sure! Here you go:\n" + json.dumps(GOOD_VIBE) + "\nHope that helps."
    assert extract_json(text) == GOOD_VIBE


def test_extract_json_failures_return_empty_dict():
    assert extract_json("") == {}
    assert extract_json("no braces at all") == {}
    assert extract_json("{not: valid json}") == {}


def test_parse_vibe_analysis_accepts_model_json():
    vibe = parse_vibe_analysis(json.dumps(GOOD_VIBE), "ignored description")
    assert vibe.primary_vibe == "industrial chic"
    assert vibe.aesthetic_keywords == ["metal", "brick"]


def test_parse_vibe_analysis_falls_back_on_garbage():
    description = "a cozy room with soft blankets"
    vibe = parse_vibe_analysis("I cannot help with that.", description)
    assert vibe == intelligent_vibe_analysis(description)


def test_parse_vibe_analysis_requires_primary_vibe():
    raw = dict(GOOD_VIBE, primaryVibe="  ")
    description = "white walls, clean lines"
    assert parse_vibe_analysis(json.dumps(raw), description) == intelligent_vibe_analysis(description)


def test_normalize_list_coerces_values():
    assert normalize_list("a, b ,, c") == ["a", "b", "c"]
    assert normalize_list(None) == []
    assert normalize_list([1, " x ", ""]) == ["1", "x"]


def test_parse_movie_analysis_requires_long_summary():
    short = {"summary": "Too short.", "genres": ["Drama"]}
    assert parse_movie_analysis(json.dumps(short)) is None

    good = {
        "summary": "A family of grifters infiltrates a rich household.",
        "themes": ["class"],
        "genres": ["Thriller", "Drama"],
        "culturalKeywords": ["korean cinema"],
    }
    analysis = parse_movie_analysis("Answer: " + json.dumps(good))
    assert analysis is not None
    assert analysis.genres == ["thriller", "drama"]
    assert analysis.cultural_keywords == ["korean cinema"]


def test_prompts_embed_input_text():
    assert 'space description for cultural vibes and aesthetics: "a quiet loft"' in build_vibe_prompt("a quiet loft")
    prompt = build_movie_analysis_prompt('The "Room"', "")
    assert "The 'Room'" in prompt
    assert "Background: None" in prompt
    assert '"culturalKeywords"' in prompt
