import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from movie_search.errors import ExtractionFailure
from movie_search.schemas import WitResponse
from movie_search.services.policy import CallPolicy

logger = logging.getLogger(__name__)


class EntityExtractor:
    """Turns a free-text prompt into the space-joined entity bodies Wit.ai finds in it."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.wit.ai/message",
        api_version: str = "20250206",
        policy: Optional[CallPolicy] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token
        self.api_url = api_url
        self.api_version = api_version
        self.policy = policy or CallPolicy()
        self.transport = transport

    def _fetch(self, prompt: str) -> bytes:
        with httpx.Client(timeout=self.policy.timeout, transport=self.transport) as client:
            response = client.get(
                self.api_url,
                params={"v": self.api_version, "q": prompt},
                headers={"Authorization": f"Bearer {self.token}"},
            )
            response.raise_for_status()
            return response.content

    def optimise(self, prompt: str) -> str:
        try:
            body = self.policy.call(lambda: self._fetch(prompt), label="Wit.ai request")
        except httpx.HTTPError as e:
            raise ExtractionFailure(f"error in sending request: {e}") from e

        logger.debug(f"Wit.ai response: {body[:500]!r}")

        try:
            wit = WitResponse.model_validate_json(body)
        except ValidationError as e:
            raise ExtractionFailure(f"error in unmarshalling: {e}") from e

        bodies: List[str] = []
        for entities in wit.entities.values():
            bodies.extend(entity.body for entity in entities)

        if not bodies:
            logger.info("No entities extracted; continuing with an empty optimized prompt")
        return " ".join(bodies)
