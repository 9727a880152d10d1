from functools import lru_cache

from fastapi import APIRouter, Depends

from movie_search.config import settings
from movie_search.schemas import APIResponse, PromptRequest
from movie_search.services.recommendation import RecommendationService

router = APIRouter()


@lru_cache
def get_recommendation_service() -> RecommendationService:
    return RecommendationService.from_settings(settings)


@router.post("/recommend", response_model=APIResponse)
def recommend_movies(req: PromptRequest, service: RecommendationService = Depends(get_recommendation_service)):
    return service.generate_recommendations(req.prompt)
