"""
Prompt text for the recommendation synthesis step.

The instructions pin the exact JSON shape that RecommendationsPayload
validates, so the two must change together.
"""

import json
from typing import List

from movie_search.schemas import CandidateMovie

RECOMMENDATION_INSTRUCTIONS = """You are a movie recommendation system. Analyze these movies based on the user query.
Your response must be a valid JSON object with the exact structure shown below.
For each movie:
1. Research and provide complete movie details including cast, directors, producers, language, and a link to the movie poster
2. Determine if it's relevant to the user's query
3. Provide a clear, very concise explanation of relevance or lack thereof
4. Assign a relevance score from 0.0 to 1.0
5. Extract 3-5 key matching keywords
6. For non-relevant movies, suggest 2-3 alternative movies from similar genres

Your response MUST be in this exact JSON format:
{
    "recommendations": [
        {
            "title": "Movie Title",
            "overview": "Detailed plot summary",
            "cast": ["Actor 1", "Actor 2", "Actor 3"],
            "directors": ["Director 1", "Director 2"],
            "producers": ["Producer 1", "Producer 2"],
            "language": "Original language",
            "release_date": "YYYY-MM-DD",
            "poster_url": "https://example.com/movie-poster.jpg",
            "relevance_explanation": "Clear explanation of why the movie matches or doesn't match the query",
            "keywords": ["keyword1", "keyword2", "keyword3"],
            "relevance_score": 0.95,
            "is_relevant": true,
            "alternative_suggestions": ["Movie 1", "Movie 2"]
        }
    ]
}

Based on the provided movie title and overview, research and include accurate cast, directors, producers, language, and poster URL information. Do not include any text before or after the JSON object. Ensure the response is valid JSON. Keep the responses and their details as short as possible."""


def build_recommendation_prompt(user_query: str, movies: List[CandidateMovie]) -> str:
    """Serializes the query, the candidate projections and the instructions into one JSON prompt."""
    prompt_data = {
        "user_query": user_query,
        "movies": [movie.prompt_view() for movie in movies],
        "instructions": RECOMMENDATION_INSTRUCTIONS,
    }
    return json.dumps(prompt_data)
