"""
End-to-end tests for POST /recommend.

The pipeline runs with its real extractor, search client and synthesizer;
only the provider edges are faked (httpx.MockTransport for Wit.ai and the
completion API, a MagicMock Pinecone client and embedder).
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import completion_body
from movie_search.errors import EmbeddingFailure
from movie_search.main import app
from movie_search.routers.recommend import get_recommendation_service
from movie_search.services.entities import EntityExtractor
from movie_search.services.recommendation import RecommendationService
from movie_search.services.synthesis import RecommendationSynthesizer
from movie_search.services.vector_search import PineconeSearchClient

client = TestClient(app)

WIT_BODY = {
    "text": "funny space adventure movie",
    "entities": {"topic": [{"body": "funny"}, {"body": "space"}, {"body": "adventure"}]},
}

GALAXY_QUEST_MATCH = {
    "id": "926",
    "score": 0.92,
    "metadata": {
        "title": "Galaxy Quest",
        "overview": "The alumni cast of a space opera television series have to play their roles as the real thing.",
        "genres": "Comedy, Science Fiction, Adventure",
        "release_date": "1999-12-25",
    },
}


class Providers:
    """Fake provider edges that record every outbound call."""

    def __init__(self, wit_body, matches, completion):
        self.wit_calls = []
        self.completion_calls = []
        self.embedder = MagicMock()
        self.embedder.embed.return_value = [0.1, 0.2, 0.3]
        self.pc = MagicMock()
        self.pc.describe_index.return_value = MagicMock(host="movie-search.svc.pinecone.io")
        self.pc.Index.return_value.query.return_value = {"matches": matches}
        self.wit_body = wit_body
        self.completion = completion

    def wit(self, request):
        self.wit_calls.append(request)
        return httpx.Response(200, json=self.wit_body)

    def openrouter(self, request):
        self.completion_calls.append(request)
        return httpx.Response(200, json=self.completion)

    def service(self):
        return RecommendationService(
            extractor=EntityExtractor("test-wit-token", transport=httpx.MockTransport(self.wit)),
            embedder=self.embedder,
            search_client=PineconeSearchClient("test-pinecone-key", pc=self.pc),
            synthesizer=RecommendationSynthesizer("test-completion-key", transport=httpx.MockTransport(self.openrouter)),
        )

    def outbound_calls(self):
        return (
            len(self.wit_calls)
            + self.embedder.embed.call_count
            + self.pc.describe_index.call_count
            + self.pc.Index.return_value.query.call_count
            + len(self.completion_calls)
        )


@pytest.fixture
def providers(recommendations_json):
    fakes = Providers(WIT_BODY, [GALAXY_QUEST_MATCH], completion_body(recommendations_json))
    app.dependency_overrides[get_recommendation_service] = fakes.service
    yield fakes
    app.dependency_overrides.clear()


class TestRecommendSuccess:
    def test_full_pipeline(self, providers):
        response = client.post("/recommend", json={"prompt": "funny space adventure movie"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["original_prompt"] == "funny space adventure movie"
        assert data["optimized_prompt"] == "funny space adventure"
        assert data["recommendations"]["recommendations"][0]["title"] == "Galaxy Quest"

        providers.embedder.embed.assert_called_once_with("funny space adventure")
        prompt = json.loads(json.loads(providers.completion_calls[0].content)["messages"][0]["content"])
        assert prompt["user_query"] == "funny space adventure movie"
        assert prompt["movies"][0]["title"] == "Galaxy Quest"

    def test_empty_entities_continue(self, providers):
        providers.wit_body = {"text": "something", "entities": {}}

        response = client.post("/recommend", json={"prompt": "something"})

        assert response.status_code == 200
        assert response.json()["optimized_prompt"] == ""
        providers.embedder.embed.assert_called_once_with("")

    def test_fenced_completion(self, providers, recommendations_json):
        providers.completion = completion_body(f"```json\n{recommendations_json}\n```")

        response = client.post("/recommend", json={"prompt": "funny space adventure movie"})

        assert response.status_code == 200
        assert response.json()["recommendations"] == json.loads(recommendations_json)


class TestRecommendValidation:
    def test_empty_prompt(self, providers):
        response = client.post("/recommend", json={"prompt": ""})

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt cannot be empty"}
        assert providers.outbound_calls() == 0

    def test_missing_prompt(self, providers):
        response = client.post("/recommend", json={})

        assert response.status_code == 400
        assert "error" in response.json()
        assert providers.outbound_calls() == 0

    def test_non_string_prompt(self, providers):
        response = client.post("/recommend", json={"prompt": 42})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request format"}


class TestRecommendFailures:
    def test_no_matches_skips_synthesis(self, providers):
        providers.pc.Index.return_value.query.return_value = {"matches": []}

        response = client.post("/recommend", json={"prompt": "funny space adventure movie"})

        assert response.status_code == 500
        assert response.json() == {"error": "Vector search failed: no matches found"}
        assert providers.completion_calls == []

    def test_missing_choices(self, providers):
        providers.completion = {"id": "gen-1", "object": "chat.completion"}

        response = client.post("/recommend", json={"prompt": "funny space adventure movie"})

        assert response.status_code == 500
        error = response.json()["error"]
        assert error.startswith("Processing recommendations failed:")
        assert "no choices in response" in error

    def test_extraction_failure(self, providers):
        providers.wit_body = ["not", "an", "object"]

        response = client.post("/recommend", json={"prompt": "funny space adventure movie"})

        assert response.status_code == 500
        assert response.json()["error"].startswith("Prompt optimization failed:")
        providers.embedder.embed.assert_not_called()

    def test_embedding_failure(self, providers):
        providers.embedder.embed.side_effect = EmbeddingFailure("exit status 1: model missing")

        response = client.post("/recommend", json={"prompt": "funny space adventure movie"})

        assert response.status_code == 500
        assert response.json() == {"error": "Embedding generation failed: exit status 1: model missing"}
        providers.pc.describe_index.assert_not_called()

    def test_unexpected_error_is_json(self, providers):
        providers.pc.Index.return_value.query.return_value = {"namespace": ""}
        # Starlette re-raises after the handler responds unless told otherwise
        lenient_client = TestClient(app, raise_server_exceptions=False)

        response = lenient_client.post("/recommend", json={"prompt": "funny space adventure movie"})

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert "matches" in response.json()["error"]
        assert providers.completion_calls == []


def test_health_check():
    assert client.get("/").json() == {"status": "online"}
