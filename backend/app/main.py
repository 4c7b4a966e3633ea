# backend/app/main.py
from dotenv import load_dotenv

load_dotenv()  # Loads .env automatically

import asyncio
import time
from typing import List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .agents.heuristic_agent import intelligent_movie_analysis
from .agents.movie_agent import run_movie_analysis_agent, run_movie_summary_agent
from .agents.recommendation_agent import run_recommendation_agent
from .agents.similar_movies_agent import build_vibe_parameters, run_similar_movies_agent
from .agents.vibe_agent import run_vibe_agent
from .agents.vision_agent import run_vision_agent
from .config import get_settings
from .errors import ConfigurationError
from .fallbacks import (
    DEFAULT_IMAGE_DESCRIPTION,
    DEFAULT_VIBE_ANALYSIS,
    default_movie_description,
    fallback_recommendations,
    fallback_similar_movies,
    rating_rng,
)
from .logging_config import (
    get_metrics_snapshot,
    inc_metric,
    log,
    measure,
    record_fallback,
    set_metric,
)
from .models import (
    AnalyzeImageRequest,
    AnalyzeMovieRequest,
    APIError,
    MovieVibeResponse,
    Recommendation,
    VibeValidationResponse,
)
from .utils import strip_data_url_prefix

# Extra seconds on top of the HTTP timeout before a stage is abandoned.
STAGE_GRACE_SECONDS = 5

app = FastAPI(title="Cultural Vibe Finder", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, error: str, code: str, details: str | None = None) -> JSONResponse:
    body = APIError(error=error, details=details, code=code)
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies get the same error shape as missing input, never a 422.
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    log.error(f"❌ Invalid request body for {request.url.path}: {details}")
    return error_response(400, "Invalid request body", "MISSING_INPUT", details=details or None)


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


# ==========================================================
#                    IMAGE VIBE PIPELINE
# ==========================================================


@app.post("/api/analyze", response_model=VibeValidationResponse)
async def analyze_image(payload: AnalyzeImageRequest):
    """
    Caption -> vibe analysis -> recommendations.

    Only missing input (400) and missing configuration (500) are fatal;
    every dependency failure is replaced by a same-shape fallback.
    """
    start = time.time()
    inc_metric("requests_image")

    try:
        log.info("=== 🚀 Starting image analysis ===")
        image_b64 = strip_data_url_prefix(payload.image_base64 or "")
        if not image_b64:
            log.error("No image provided")
            return error_response(400, "No image provided", "MISSING_INPUT")

        try:
            settings = get_settings()
            settings.require_inference_key()
        except ConfigurationError as e:
            log.error(f"❌ Configuration error: {e}")
            return error_response(500, f"Server configuration error: {e}", "CONFIG_ERROR")

        stage_timeout = settings.request_timeout + STAGE_GRACE_SECONDS

        # ---------------- 1. Vision Agent ----------------
        try:
            log.info("🧠 Step 1: captioning image...")
            with measure("vision"):
                image_description = await asyncio.wait_for(
                    run_vision_agent(image_b64, settings),
                    timeout=stage_timeout,
                )
        except Exception as e:
            record_fallback("vision", e)
            image_description = DEFAULT_IMAGE_DESCRIPTION

        # ---------------- 2. Vibe Agent ------------------
        try:
            log.info("🎯 Step 2: analyzing vibe...")
            with measure("vibe"):
                vibe_analysis = await asyncio.wait_for(
                    run_vibe_agent(image_description, settings),
                    timeout=stage_timeout,
                )
        except Exception as e:
            record_fallback("vibe", e)
            vibe_analysis = DEFAULT_VIBE_ANALYSIS.model_copy(deep=True)

        # ---------------- 3. Recommendation Agent --------
        recommendations: List[Recommendation]
        try:
            log.info("📈 Step 3: getting recommendations...")
            with measure("recommendations"):
                recommendations = await asyncio.wait_for(
                    run_recommendation_agent(vibe_analysis, settings),
                    timeout=stage_timeout * 2,
                )
        except Exception as e:
            record_fallback("recommendations", e)
            recommendations = fallback_recommendations(vibe_analysis)

        processing_time = _elapsed_ms(start)
        set_metric("processing_ms_last_image", processing_time)
        log.info(f"🏁 Image analysis complete in {processing_time}ms")

        return VibeValidationResponse(
            image_description=image_description,
            vibe_analysis=vibe_analysis,
            recommendations=recommendations,
            processing_time=processing_time,
        )

    except Exception as e:
        log.exception(f"💥 Critical error in image analysis: {e}")
        inc_metric("errors_image")
        return error_response(500, "Analysis failed", "ANALYSIS_ERROR", details=str(e))


# ==========================================================
#                    MOVIE VIBE PIPELINE
# ==========================================================


@app.post("/api/analyze-movie", response_model=MovieVibeResponse)
async def analyze_movie(payload: AnalyzeMovieRequest):
    """
    Summary -> movie analysis -> similar movies, with the same
    fatal/fallback split as /api/analyze.
    """
    start = time.time()
    inc_metric("requests_movie")

    try:
        log.info("=== 🎬 Starting movie analysis ===")
        movie_name = (payload.movie_name or "").strip()
        if not movie_name:
            log.error("No movie name provided")
            return error_response(400, "No movie name provided", "MISSING_INPUT")

        try:
            settings = get_settings()
            settings.require_inference_key()
        except ConfigurationError as e:
            log.error(f"❌ Configuration error: {e}")
            return error_response(500, f"Server configuration error: {e}", "CONFIG_ERROR")

        stage_timeout = settings.request_timeout + STAGE_GRACE_SECONDS

        # ---------------- 1. Summary Agent ---------------
        try:
            log.info(f"🧠 Step 1: summarizing {movie_name!r}...")
            with measure("movie_summary"):
                description = await asyncio.wait_for(
                    run_movie_summary_agent(movie_name, settings),
                    timeout=stage_timeout,
                )
        except Exception as e:
            record_fallback("movie_summary", e)
            description = default_movie_description(movie_name)

        # ---------------- 2. Movie Analysis Agent --------
        try:
            log.info("🎯 Step 2: analyzing movie vibe...")
            with measure("movie_analysis"):
                movie_analysis = await asyncio.wait_for(
                    run_movie_analysis_agent(movie_name, description, settings),
                    timeout=stage_timeout * len(settings.movie_analysis_models),
                )
        except Exception as e:
            record_fallback("movie_analysis", e)
            movie_analysis = intelligent_movie_analysis(movie_name, description)

        vibe_parameters = build_vibe_parameters(movie_analysis)

        # ---------------- 3. Similar Movies Agent --------
        try:
            log.info("📈 Step 3: finding similar movies...")
            with measure("similar_movies"):
                similar_movies = await asyncio.wait_for(
                    run_similar_movies_agent(movie_name, movie_analysis, vibe_parameters, settings),
                    timeout=stage_timeout,
                )
        except Exception as e:
            record_fallback("similar_movies", e)
            similar_movies = fallback_similar_movies(
                movie_name,
                movie_analysis,
                rng=rating_rng(settings),
                jitter=settings.rating_jitter,
            )

        processing_time = _elapsed_ms(start)
        set_metric("processing_ms_last_movie", processing_time)
        log.info(f"🏁 Movie analysis complete in {processing_time}ms")

        return MovieVibeResponse(
            movie_analysis=movie_analysis,
            vibe_parameters=vibe_parameters,
            similar_movies=similar_movies,
            processing_time=processing_time,
        )

    except Exception as e:
        log.exception(f"💥 Critical error in movie analysis: {e}")
        inc_metric("errors_movie")
        return error_response(500, "Analysis failed", "ANALYSIS_ERROR", details=str(e))


# ==========================================================
#                     METRICS + HEALTH
# ==========================================================


@app.get("/metrics")
async def metrics():
    return get_metrics_snapshot()


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "pipelines": {
            "image": ["vision", "vibe", "recommendations"],
            "movie": ["movie_summary", "movie_analysis", "similar_movies"],
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backend.app.main:app", host="127.0.0.1", port=8000, reload=True)
