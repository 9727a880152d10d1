import logging
from typing import Any, List, Optional, Sequence

import numpy as np
from pinecone import Pinecone
from pinecone.exceptions import NotFoundException

from movie_search.errors import NoMatchesFailure, SearchFailure
from movie_search.schemas import CandidateMovie
from movie_search.services.policy import CallPolicy

logger = logging.getLogger(__name__)

TOP_K = 10


def to_index_precision(vector: Sequence[float]) -> List[float]:
    """Narrows a float64 embedding to the float32 values the index stores.

    The narrowing is lossy; search results are computed on the float32 values.
    """
    return np.asarray(vector, dtype=np.float64).astype(np.float32).tolist()


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def candidate_from_match(match: Any) -> CandidateMovie:
    m = match.get("metadata") or {}
    return CandidateMovie(
        id=_as_text(match["id"]),
        title=_as_text(m.get("title")),
        overview=_as_text(m.get("overview")),
        genres=_as_text(m.get("genres")),
        release_date=_as_text(m.get("release_date")),
        score=float(match.get("score") or 0.0),
    )


class PineconeSearchClient:
    def __init__(
        self,
        api_key: str,
        index_name: str = "movie-search",
        host: str = "",
        namespace: str = "",
        policy: Optional[CallPolicy] = None,
        pc: Optional[Pinecone] = None,
    ):
        self.api_key = api_key
        self.index_name = index_name
        self.host = host
        self.namespace = namespace
        self.policy = policy or CallPolicy()
        self.pc = pc
        self.index = None

    def connect(self):
        """Opens the index connection once; a missing index is a configuration error."""
        if self.index is not None:
            return self.index
        try:
            if self.pc is None:
                self.pc = Pinecone(api_key=self.api_key)
            description = self.pc.describe_index(self.index_name)
        except NotFoundException as e:
            raise SearchFailure(f"index {self.index_name!r} does not exist") from e
        except Exception as e:
            raise SearchFailure(f"failed to describe index: {e}") from e

        host = self.host or description.host
        try:
            self.index = self.pc.Index(host=host)
        except Exception as e:
            raise SearchFailure(f"failed to create index connection: {e}") from e
        logger.info(f"Connected to Pinecone index {self.index_name!r}.")
        return self.index

    def search(self, vector: Sequence[float]) -> List[CandidateMovie]:
        index = self.connect()
        query_vec = to_index_precision(vector)

        try:
            results = self.policy.call(
                lambda: index.query(
                    vector=query_vec,
                    top_k=TOP_K,
                    include_values=False,
                    include_metadata=True,
                    namespace=self.namespace,
                ),
                label="Pinecone query",
            )
        except Exception as e:
            raise SearchFailure(f"failed to query index: {e}") from e

        matches = results["matches"] or []
        if not matches:
            raise NoMatchesFailure("no matches found")

        candidates = [candidate_from_match(match) for match in matches]
        logger.debug(f"Pinecone candidates: {[(c.title, c.score) for c in candidates]}")
        return candidates
