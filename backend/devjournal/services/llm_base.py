"""
DevJournal Backend — Summarizer Interface
===========================================

What:  Abstract contract for the AI summarization collaborator.
Who:   Implemented by GeminiService; injected into the summarize route via
       auth.dependencies.get_summarizer so tests can swap in a fake.
"""

from abc import ABC, abstractmethod


class Summarizer(ABC):
    """
    Contract:
        - summarize() returns the summary text, "" for blank input
        - failures surface as LLMServiceError (never retried automatically)
    """

    @abstractmethod
    async def summarize(self, text: str) -> str:
        """
        Summarize markdown text in two or three sentences.

        Raises:
            LLMServiceError: model not configured or the call failed
            CircuitBreakerOpenError: too many recent failures
        """
        ...

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """True when the summarizer is configured and may be called."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability check used by GET /health."""
        ...
