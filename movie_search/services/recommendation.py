import logging
from enum import Enum

from movie_search.config import Settings
from movie_search.errors import PipelineError, ValidationFailure
from movie_search.schemas import APIResponse
from movie_search.services.embeddings import Embedder, build_embedder
from movie_search.services.entities import EntityExtractor
from movie_search.services.policy import CallPolicy
from movie_search.services.synthesis import RecommendationSynthesizer
from movie_search.services.vector_search import PineconeSearchClient

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    RECEIVED = "received"
    OPTIMIZED = "optimized"
    EMBEDDED = "embedded"
    SEARCHED = "searched"
    SYNTHESIZED = "synthesized"
    RESPONDED = "responded"
    ERROR = "error"


class RecommendationService:
    """Runs one prompt through extraction, embedding, vector search and synthesis, in that order.

    Any stage failure aborts the run; earlier stages are never retried or rolled back.
    """

    def __init__(
        self,
        extractor: EntityExtractor,
        embedder: Embedder,
        search_client: PineconeSearchClient,
        synthesizer: RecommendationSynthesizer,
    ):
        self.extractor = extractor
        self.embedder = embedder
        self.search_client = search_client
        self.synthesizer = synthesizer

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecommendationService":
        def policy(timeout=None):
            return CallPolicy(timeout=timeout, attempts=settings.RETRY_ATTEMPTS, backoff=settings.RETRY_BACKOFF)

        missing = settings.missing_credentials()
        if missing:
            logger.critical(f"Missing configuration: {', '.join(missing)}")

        return cls(
            extractor=EntityExtractor(
                settings.WIT_TOKEN,
                api_url=settings.WIT_API_URL,
                api_version=settings.WIT_API_VERSION,
                policy=policy(settings.WIT_TIMEOUT),
            ),
            embedder=build_embedder(
                settings.EMBEDDING_BACKEND,
                command_line=settings.EMBEDDER_COMMAND,
                api_key=settings.GEMINI_API_KEY,
                model=settings.GEMINI_EMBEDDING_MODEL,
                policy=policy(settings.EMBEDDER_TIMEOUT),
            ),
            search_client=PineconeSearchClient(
                settings.PINECONE_API_KEY,
                index_name=settings.PINECONE_INDEX,
                host=settings.PINECONE_HOST,
                namespace=settings.PINECONE_NAMESPACE,
                policy=policy(),
            ),
            synthesizer=RecommendationSynthesizer(
                settings.COMPLETION_API_KEY,
                api_url=settings.COMPLETION_API_URL,
                model=settings.COMPLETION_MODEL,
                referer=settings.COMPLETION_REFERER,
                title=settings.COMPLETION_TITLE,
                policy=policy(settings.COMPLETION_TIMEOUT),
            ),
        )

    def generate_recommendations(self, prompt: str) -> APIResponse:
        stage = Stage.RECEIVED
        logger.info("=== Starting New Request ===")

        if not prompt or not prompt.strip():
            logger.error("Empty prompt received")
            raise ValidationFailure("Prompt cannot be empty")

        try:
            # 1. OPTIMIZE
            optimized_prompt = self.extractor.optimise(prompt)
            stage = Stage.OPTIMIZED
            logger.info(f"[{stage.value}] Optimized prompt: {optimized_prompt!r}")

            # 2. EMBED
            embedding = self.embedder.embed(optimized_prompt)
            stage = Stage.EMBEDDED
            logger.info(f"[{stage.value}] Generated embedding with length: {len(embedding)}")

            # 3. SEARCH
            candidates = self.search_client.search(embedding)
            stage = Stage.SEARCHED
            logger.info(f"[{stage.value}] Retrieved {len(candidates)} candidate movies")

            # 4. SYNTHESIZE
            recommendations = self.synthesizer.synthesize(prompt, candidates)
            stage = Stage.SYNTHESIZED
            logger.info(f"[{stage.value}] Recommendations validated")
        except PipelineError as e:
            logger.error(f"[{Stage.ERROR.value}] after {stage.value}: {e.message}")
            raise

        response = APIResponse(
            status="success",
            original_prompt=prompt,
            optimized_prompt=optimized_prompt,
            recommendations=recommendations,
        )
        logger.info(f"[{Stage.RESPONDED.value}] === Request Complete ===")
        return response
