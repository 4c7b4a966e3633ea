# backend/app/models.py

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Category = Literal["restaurants", "music", "activities", "experiences"]


class WireModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeImageRequest(WireModel):
    image_base64: Optional[str] = None


class AnalyzeMovieRequest(WireModel):
    movie_name: Optional[str] = None


class QlooData(WireModel):
    entity_id: Optional[str] = Field(default=None, alias="entity_id")
    type: Optional[str] = None
    subtype: Optional[str] = None


class VibeAnalysis(WireModel):
    primary_vibe: str = Field(min_length=1)
    secondary_vibes: List[str] = Field(default_factory=list)
    cultural_context: str = ""
    aesthetic_keywords: List[str] = Field(default_factory=list)
    mood_descriptors: List[str] = Field(default_factory=list)


class RecommendationItem(WireModel):
    id: str
    name: str
    description: str
    reason: str
    confidence: float = Field(ge=0.0, le=1.0)
    tags: List[str] = Field(default_factory=list)
    rating: Optional[float] = None
    website: Optional[str] = None
    qloo_data: Optional[QlooData] = Field(default=None, alias="qloo_data")


class Recommendation(WireModel):
    category: Category
    items: List[RecommendationItem]


class VibeValidationResponse(WireModel):
    image_description: str
    vibe_analysis: VibeAnalysis
    recommendations: List[Recommendation]
    processing_time: int


class MovieAnalysis(WireModel):
    summary: str
    themes: List[str] = Field(default_factory=list)
    genres: List[str] = Field(default_factory=list)
    cultural_keywords: List[str] = Field(default_factory=list)


class MovieVibeParameters(WireModel):
    audiences: List[str]
    tags: List[str]
    entity_type: str


class SimilarMovie(WireModel):
    title: str = Field(min_length=1)
    description: str
    year: Optional[int] = None
    rating: Optional[float] = None
    match_score: float = Field(ge=0.0, le=1.0)
    reason: str
    shared_elements: List[str] = Field(default_factory=list)
    qloo_data: Optional[QlooData] = Field(default=None, alias="qloo_data")


class MovieVibeResponse(WireModel):
    movie_analysis: MovieAnalysis
    vibe_parameters: MovieVibeParameters
    similar_movies: List[SimilarMovie]
    processing_time: int


class APIError(BaseModel):
    error: str
    details: Optional[str] = None
    code: Optional[str] = None
