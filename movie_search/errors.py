"""
Failure taxonomy for the recommendation pipeline.

Every stage raises its own subclass of PipelineError. None of them are
recovered from: the handler maps them straight to an HTTP error response.
"""


class PipelineError(Exception):
    """Base class for every pipeline failure."""

    stage = "Request"
    status_code = 500

    @property
    def message(self) -> str:
        return f"{self.stage} failed: {self}"


class ValidationFailure(PipelineError):
    """The inbound request is malformed or the prompt is empty."""

    stage = "Validation"
    status_code = 400

    @property
    def message(self) -> str:
        return str(self)


class ExtractionFailure(PipelineError):
    stage = "Prompt optimization"


class EmbeddingFailure(PipelineError):
    stage = "Embedding generation"


class SearchFailure(PipelineError):
    stage = "Vector search"


class NoMatchesFailure(SearchFailure):
    """The index answered but returned no candidates."""


class SynthesisFailure(PipelineError):
    stage = "Processing recommendations"
