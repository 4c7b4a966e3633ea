import html
import os
import time

import requests
import streamlit as st

from backend.app.utils import (
    format_confidence,
    get_category_icon,
    get_vibe_emoji,
    image_to_base64,
    render_pills as pills,
    validate_image_file,
)

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")
API_ANALYZE = f"{API_BASE}/api/analyze"
API_ANALYZE_MOVIE = f"{API_BASE}/api/analyze-movie"

PAGE_TITLE = "Cultural Vibe Finder"
MAX_UPLOAD_MB = float(os.getenv("MAX_UPLOAD_MB", "5"))
REQUEST_TIMEOUT = 120

POPULAR_MOVIES = ["Blade Runner 2049", "The Grand Budapest Hotel", "Spirited Away", "Parasite"]

STAGES = {
    "analyzing": ("Analyzing Cultural Vibes", "Our models are reading the aesthetic and cultural cues."),
    "generating": ("Generating Recommendations", "Matching the vibe against taste data."),
}

st.set_page_config(
    page_title=PAGE_TITLE,
    layout="wide",
    initial_sidebar_state="collapsed",
)

# ---------- STYLING ----------
st.markdown(
    """
    <style>
    [data-testid="stAppViewContainer"] {
        background:
            radial-gradient(circle at top left, #312e81 0, transparent 55%),
            radial-gradient(circle at bottom right, #0f172a 0, transparent 60%),
            #0f172a;
        color: #e5e7eb;
    }
    .section-label {
        font-size: 0.78rem;
        text-transform: uppercase;
        color: #a5b4fc;
        margin-bottom: 0.55rem;
        letter-spacing: 0.12em;
    }
    .pill {
        font-size: 0.72rem;
        padding: 0.15rem 0.6rem;
        border-radius: 999px;
        border: 1px solid rgba(165,180,252,0.45);
        color: #c7d2fe;
        display: inline-block;
        margin: 0 0.25rem 0.25rem 0;
    }
    .item-card {
        background: rgba(30,27,75,0.65);
        border-radius: 0.9rem;
        padding: 0.75rem 0.9rem;
        border: 1px solid rgba(129,140,248,0.25);
        margin-bottom: 0.5rem;
    }
    </style>
    """,
    unsafe_allow_html=True,
)

# ---------- STATE ----------
if "image_result" not in st.session_state:
    st.session_state.image_result = None
if "movie_result" not in st.session_state:
    st.session_state.movie_result = None
if "movie_name" not in st.session_state:
    st.session_state.movie_name = ""


def post_with_stages(url, payload):
    """POST to the API while showing the two loading stages. Returns (json, error)."""
    with st.status(STAGES["analyzing"][0], expanded=True) as status:
        st.write(STAGES["analyzing"][1])
        try:
            r = requests.post(url, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            status.update(label="Could not reach backend", state="error")
            return None, f"Could not reach backend: {e}"

        if not r.ok:
            status.update(label="Analysis failed", state="error")
            try:
                return None, r.json().get("error") or r.text
            except ValueError:
                return None, r.text

        status.update(label=STAGES["generating"][0])
        st.write(STAGES["generating"][1])
        time.sleep(1.5)
        status.update(label="Analysis complete", state="complete")
        return r.json(), None


def render_image_result(result):
    vibe = result["vibeAnalysis"]
    st.markdown('<div class="section-label">Vibe</div>', unsafe_allow_html=True)
    st.subheader(f"{get_vibe_emoji(vibe['primaryVibe'])} {vibe['primaryVibe'].title()}")
    st.caption(f"Analyzed in {result['processingTime'] / 1000:.1f}s")
    st.write(result["imageDescription"])
    st.write(vibe["culturalContext"])
    st.markdown(pills(vibe["secondaryVibes"]), unsafe_allow_html=True)
    st.markdown("**Aesthetic keywords**")
    st.markdown(pills(vibe["aestheticKeywords"]), unsafe_allow_html=True)
    st.markdown("**Mood**")
    st.markdown(pills(vibe["moodDescriptors"]), unsafe_allow_html=True)

    st.markdown('<div class="section-label">Recommendations</div>', unsafe_allow_html=True)
    columns = st.columns(2)
    for idx, rec in enumerate(result["recommendations"]):
        with columns[idx % 2]:
            st.markdown(f"#### {get_category_icon(rec['category'])} {rec['category'].title()}")
            for item in rec["items"]:
                st.markdown(
                    f"""
                    <div class="item-card">
                        <strong>{html.escape(item['name'])}</strong>
                        <span style="float:right;">{format_confidence(item['confidence'])}</span>
                        <div style="font-size:0.85rem;">{html.escape(item['description'])}</div>
                        <div style="font-size:0.78rem;color:#a5b4fc;">{html.escape(item['reason'])}</div>
                        <div>{pills(item['tags'])}</div>
                    </div>
                    """,
                    unsafe_allow_html=True,
                )


def render_movie_result(result, movie_name):
    analysis = result["movieAnalysis"]
    params = result["vibeParameters"]
    st.subheader(f"🎬 {movie_name}")
    st.caption(f"Analyzed in {result['processingTime'] / 1000:.1f}s")
    st.write(analysis["summary"])

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**Themes**")
        st.markdown(pills(analysis["themes"]), unsafe_allow_html=True)
        st.markdown("**Genres**")
        st.markdown(pills(analysis["genres"]), unsafe_allow_html=True)
        st.markdown("**Cultural keywords**")
        st.markdown(pills(analysis["culturalKeywords"]), unsafe_allow_html=True)
    with c2:
        st.markdown("**Target audiences**")
        for audience in params["audiences"]:
            st.write(f"• {audience}")
        st.markdown("**Vibe tags**")
        st.markdown(pills(params["tags"][:8]), unsafe_allow_html=True)

    st.markdown('<div class="section-label">Movies with similar vibes</div>', unsafe_allow_html=True)
    for movie in result["similarMovies"]:
        meta = " · ".join(
            x for x in [
                str(movie["year"]) if movie.get("year") else "",
                f"{movie['rating']}/10" if movie.get("rating") else "",
            ] if x
        )
        st.markdown(
            f"""
            <div class="item-card">
                <strong>{html.escape(movie['title'])}</strong>
                <span style="float:right;">{format_confidence(movie['matchScore'])}</span>
                <div style="font-size:0.78rem;color:#9ca3af;">{html.escape(meta)}</div>
                <div style="font-size:0.85rem;">{html.escape(movie['description'])}</div>
                <div style="font-size:0.78rem;color:#a5b4fc;">Why it matches: {html.escape(movie['reason'])}</div>
                <div>{pills(movie['sharedElements'][:4])}</div>
            </div>
            """,
            unsafe_allow_html=True,
        )


# ---------- HEADER ----------
st.markdown(f"## {PAGE_TITLE}")
st.caption("Upload a space or name a movie and discover its cultural vibe, powered by Hugging Face models and Qloo taste data.")

image_tab, movie_tab = st.tabs(["📷 Image vibe", "🎬 Movie vibe"])

# =========================================================
# IMAGE
# =========================================================
with image_tab:
    left, right = st.columns([0.9, 1.1])
    with left:
        st.markdown('<div class="section-label">Image input</div>', unsafe_allow_html=True)
        uploaded = st.file_uploader(
            "Drag and drop file here",
            type=["png", "jpg", "jpeg", "webp"],
            label_visibility="collapsed",
        )
        if uploaded:
            st.image(uploaded, caption="Preview", use_container_width=True)

        if st.button("Analyze vibe"):
            if uploaded is None:
                st.warning("Upload an image first.")
            else:
                data = uploaded.getvalue()
                ok, error = validate_image_file(data, uploaded.type, int(MAX_UPLOAD_MB * 1024 * 1024))
                if not ok:
                    st.error(error)
                else:
                    result, error = post_with_stages(API_ANALYZE, {"imageBase64": image_to_base64(data)})
                    if error:
                        st.error(error)
                    else:
                        st.session_state.image_result = result

    with right:
        if st.session_state.image_result:
            render_image_result(st.session_state.image_result)
        else:
            st.caption("No analysis yet. Upload a photo of a space and click Analyze vibe.")

# =========================================================
# MOVIE
# =========================================================
with movie_tab:
    with st.form("movie_form"):
        movie_input = st.text_input("Movie name", placeholder="Enter a movie name...")
        submitted = st.form_submit_button("Find similar vibes")

    st.caption("Try: " + ", ".join(POPULAR_MOVIES))
    example_cols = st.columns(len(POPULAR_MOVIES))
    for col, title in zip(example_cols, POPULAR_MOVIES):
        if col.button(title):
            movie_input, submitted = title, True

    if submitted:
        name = (movie_input or "").strip()
        if not name:
            st.error("Please enter a movie name")
        elif len(name) < 2:
            st.error("Movie name must be at least 2 characters")
        else:
            result, error = post_with_stages(API_ANALYZE_MOVIE, {"movieName": name})
            if error:
                st.error(error)
            else:
                st.session_state.movie_result = result
                st.session_state.movie_name = name

    if st.session_state.movie_result:
        render_movie_result(st.session_state.movie_result, st.session_state.movie_name)
