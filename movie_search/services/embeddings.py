import json
import logging
import shlex
import subprocess
from typing import List, Optional, Protocol, Sequence

import google.generativeai as genai

from movie_search.errors import EmbeddingFailure
from movie_search.services.policy import CallPolicy

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    def embed(self, text: str) -> List[float]:
        ...


def parse_vector(raw: object) -> List[float]:
    """Checks that a decoded embedding is a non-empty array of numbers."""
    if not isinstance(raw, list) or not raw:
        raise EmbeddingFailure(f"expected a non-empty JSON array, got {type(raw).__name__}")
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in raw):
        raise EmbeddingFailure("embedding array contains non-numeric values")
    return [float(v) for v in raw]


class SubprocessEmbedder:
    """Runs an external embedding program: text in as the last argument, JSON array out on stdout."""

    def __init__(self, command: Sequence[str], policy: Optional[CallPolicy] = None):
        self.command = list(command)
        self.policy = policy or CallPolicy()

    @classmethod
    def from_command_line(cls, command_line: str, policy: Optional[CallPolicy] = None) -> "SubprocessEmbedder":
        return cls(shlex.split(command_line), policy=policy)

    def _run(self, text: str) -> bytes:
        result = subprocess.run(
            [*self.command, text],
            capture_output=True,
            check=True,
            timeout=self.policy.timeout,
        )
        return result.stdout

    def embed(self, text: str) -> List[float]:
        if not self.command:
            raise EmbeddingFailure("embedding command is not configured")

        try:
            raw_out = self.policy.call(lambda: self._run(text), label="embedding process")
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise EmbeddingFailure(f"exit status {e.returncode}: {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise EmbeddingFailure(f"timed out after {e.timeout}s") from e
        except OSError as e:
            raise EmbeddingFailure(str(e)) from e

        try:
            out = raw_out.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EmbeddingFailure(f"embedding process output is not UTF-8: {e}") from e

        if not out.strip():
            raise EmbeddingFailure("embedding process produced no output")

        try:
            raw = json.loads(out)
        except json.JSONDecodeError as e:
            raise EmbeddingFailure(f"invalid JSON from embedding process: {e}") from e

        return parse_vector(raw)


class GeminiEmbedder:
    def __init__(self, api_key: str, model: str = "models/text-embedding-004", policy: Optional[CallPolicy] = None):
        self.model = model
        self.policy = policy or CallPolicy()
        if api_key:
            genai.configure(api_key=api_key)

    def embed(self, text: str) -> List[float]:
        try:
            emb_response = self.policy.call(
                lambda: genai.embed_content(model=self.model, content=text, task_type="retrieval_query"),
                label="Gemini embedding",
            )
        except Exception as e:
            raise EmbeddingFailure(f"GOOGLE EMBEDDING FAILED: {e}") from e
        return parse_vector(emb_response.get("embedding"))


def build_embedder(backend: str, command_line: str = "", api_key: str = "", model: str = "models/text-embedding-004",
                   policy: Optional[CallPolicy] = None) -> Embedder:
    if backend == "gemini":
        return GeminiEmbedder(api_key, model=model, policy=policy)
    if backend == "subprocess":
        return SubprocessEmbedder.from_command_line(command_line, policy=policy)
    raise ValueError(f"Unknown embedding backend: {backend!r}")
