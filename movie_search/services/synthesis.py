import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from movie_search.errors import SynthesisFailure
from movie_search.prompts import build_recommendation_prompt
from movie_search.schemas import CandidateMovie, CompletionChoice, CompletionEnvelope, RecommendationsPayload
from movie_search.services.policy import CallPolicy

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
MAX_TOKENS = 4000

_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_+-]*")
_TRAILING_FENCE = re.compile(r"```$")


def strip_code_fences(text: str) -> str:
    """Removes the Markdown code fence (and its language tag) a model wraps around JSON."""
    text = text.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def extract_content(body: str) -> str:
    """Unwraps choices[0].message.content from a chat completion response body."""
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise SynthesisFailure(f"failed to parse AI response: {e}, body: {body}") from e
    if not isinstance(data, dict):
        raise SynthesisFailure(f"failed to parse AI response: expected a JSON object, body: {body}")

    try:
        envelope = CompletionEnvelope.model_validate(data)
    except ValidationError as e:
        raise SynthesisFailure(f"no choices in response: {body}") from e

    if envelope.error is not None:
        raise SynthesisFailure(f"API error: {envelope.error}")
    if not envelope.choices:
        raise SynthesisFailure(f"no choices in response: {body}")

    first_choice = envelope.choices[0]
    if not isinstance(first_choice, dict):
        raise SynthesisFailure(f"invalid choice format: {first_choice}")
    if not isinstance(first_choice.get("message"), dict):
        raise SynthesisFailure(f"invalid message format: {first_choice}")
    try:
        choice = CompletionChoice.model_validate(first_choice)
    except ValidationError as e:
        raise SynthesisFailure(f"invalid content format: {first_choice['message']}") from e
    return choice.message.content


def validate_recommendations(content: str) -> Dict[str, Any]:
    """Parses the model output and checks it against the full recommendation schema."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SynthesisFailure(f"AI response is not valid JSON: {e}") from e

    try:
        RecommendationsPayload.model_validate(data, strict=True)
    except ValidationError as e:
        raise SynthesisFailure(f"invalid JSON structure in AI response: {e}") from e
    return data


class RecommendationSynthesizer:
    """Asks a chat completion model to enrich and rank the candidate movies."""

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://openrouter.ai/api/v1/chat/completions",
        model: str = "nvidia/llama-3.1-nemotron-70b-instruct:free",
        referer: str = "https://localhost:8080",
        title: str = "Movie Recommendations",
        policy: Optional[CallPolicy] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.referer = referer
        self.title = title
        self.policy = policy or CallPolicy(timeout=120.0)
        self.transport = transport

    def request_body(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }

    def _post(self, payload: Dict[str, Any]) -> str:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.referer,
            "X-Title": self.title,
        }
        with httpx.Client(timeout=self.policy.timeout, transport=self.transport) as client:
            response = client.post(self.api_url, json=payload, headers=headers)
            return response.text

    def query(self, prompt: str) -> str:
        """Sends the prompt and returns the fence-stripped text the model produced."""
        payload = self.request_body(prompt)
        logger.debug(f"AI request body:\n{json.dumps(payload, indent=2)}")

        try:
            body = self.policy.call(lambda: self._post(payload), label="completion request")
        except httpx.HTTPError as e:
            raise SynthesisFailure(f"failed to make request: {e}") from e

        logger.debug(f"Raw AI response:\n{body}")
        return strip_code_fences(extract_content(body))

    def synthesize(self, user_query: str, candidates: List[CandidateMovie]) -> Dict[str, Any]:
        if not candidates:
            raise SynthesisFailure("no candidate movies to rank")

        prompt = build_recommendation_prompt(user_query, candidates)
        content = self.query(prompt)
        recommendations = validate_recommendations(content)
        logger.info(f"AI returned {len(recommendations['recommendations'])} recommendations")
        return recommendations
