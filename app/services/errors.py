class TriviaPipelineError(Exception):
    """Base class for every error raised inside the question pipeline."""


class ConfigurationError(TriviaPipelineError):
    """A tier is missing the credentials or settings it needs to run."""


class ProviderError(TriviaPipelineError):
    """The generative provider failed, timed out or answered with nothing usable."""


class QuestionValidationError(TriviaPipelineError):
    """A single candidate question failed a structural check."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class StoreError(TriviaPipelineError):
    """The persistent question store could not be queried or written."""
