"""
Pytest configuration for the movie search tests.

Sets dummy credentials so settings resolve without a real environment, and
provides canned provider payloads.
"""
import json
import os

import pytest

os.environ.setdefault("WIT_TOKEN", "test-wit-token")
os.environ.setdefault("PINECONE_API_KEY", "test-pinecone-key")
os.environ.setdefault("COMPLETION_API_KEY", "test-completion-key")
os.environ.setdefault("EMBEDDER_COMMAND", "embed")

from movie_search.schemas import CandidateMovie  # noqa: E402


def make_recommendation(title="Galaxy Quest", **overrides):
    recommendation = {
        "title": title,
        "overview": "Actors from a cancelled sci-fi show are mistaken for real space heroes.",
        "cast": ["Tim Allen", "Sigourney Weaver", "Alan Rickman"],
        "directors": ["Dean Parisot"],
        "producers": ["Mark Johnson", "Charles Newirth"],
        "language": "English",
        "release_date": "1999-12-25",
        "poster_url": "https://example.com/galaxy-quest.jpg",
        "relevance_explanation": "Comedic space adventure.",
        "keywords": ["funny", "space", "adventure"],
        "relevance_score": 0.95,
        "is_relevant": True,
    }
    recommendation.update(overrides)
    return recommendation


def completion_body(content):
    """Chat completion envelope wrapping the given message content."""
    return {
        "id": "gen-123",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


@pytest.fixture
def recommendations_payload():
    return {"recommendations": [make_recommendation()]}


@pytest.fixture
def recommendations_json(recommendations_payload):
    return json.dumps(recommendations_payload)


@pytest.fixture
def galaxy_quest():
    return CandidateMovie(
        id="926",
        title="Galaxy Quest",
        overview="The alumni cast of a space opera television series have to play their roles as the real thing.",
        genres="Comedy, Science Fiction, Adventure",
        release_date="1999-12-25",
        score=0.92,
    )
