from pydantic import BaseModel, StrictStr, field_validator
from typing import Any, Dict, List, Optional


# --- INBOUND ---
class PromptRequest(BaseModel):
    prompt: StrictStr


# --- ENTITY EXTRACTION ---
class WitEntity(BaseModel):
    body: str


class WitResponse(BaseModel):
    entities: Dict[str, List[WitEntity]] = {}
    text: str = ""

    @field_validator("entities", mode="before")
    @classmethod
    def null_entities_are_empty(cls, value):
        return {} if value is None else value


# --- VECTOR SEARCH ---
class CandidateMovie(BaseModel):
    id: str
    title: str = ""
    overview: str = ""
    genres: str = ""
    release_date: str = ""
    score: float = 0.0

    def prompt_view(self) -> Dict[str, Any]:
        """Compact projection sent to the language model (no id)."""
        return self.model_dump(include={"title", "overview", "genres", "release_date", "score"})


# --- COMPLETION ENVELOPE ---
class CompletionMessage(BaseModel):
    content: StrictStr


class CompletionChoice(BaseModel):
    message: CompletionMessage


class CompletionEnvelope(BaseModel):
    choices: Optional[List[Any]] = None
    error: Optional[Any] = None


# --- RECOMMENDATIONS ---
class Recommendation(BaseModel):
    title: str
    overview: str
    cast: List[str]
    directors: List[str]
    producers: List[str]
    language: str
    release_date: str
    poster_url: str
    relevance_explanation: str
    keywords: List[str]
    relevance_score: float
    is_relevant: bool
    alternative_suggestions: Optional[List[str]] = None


class RecommendationsPayload(BaseModel):
    recommendations: List[Recommendation]


# --- OUTBOUND ---
class APIResponse(BaseModel):
    status: str = "success"
    original_prompt: str
    optimized_prompt: str
    recommendations: Dict[str, Any]
