"""
DevJournal Backend — Google Gemini Summarizer
===============================================

What:  Summarizer implementation backed by the Gemini API.
How:   One GenerativeModel per process, guarded by a circuit breaker.
       Calls are NOT retried: a failed summary is reported to the caller,
       who may simply ask again.

Circuit breaker:
    CLOSED → cb_failure_threshold consecutive failures → OPEN
    OPEN   → every call raises CircuitBreakerOpenError until
             cb_recovery_timeout seconds have passed → HALF_OPEN
    HALF_OPEN → one trial call; success closes, failure re-opens
"""

import logging
import time
from typing import Optional

import google.generativeai as genai

from devjournal.config import settings
from devjournal.exceptions import CircuitBreakerOpenError, LLMServiceError
from devjournal.services.llm_base import Summarizer

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = (
    "Please provide a concise summary (2-3 sentences) of the following text. "
    "Focus on the main points and key takeaways. Do not include any preamble "
    'like "Here is a summary:" - just provide the summary directly.\n\n'
    "Text to summarize:\n"
)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    Not thread-safe; uvicorn's async workers share one event loop per process.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def remaining(self) -> int:
        elapsed = time.time() - (self.last_failure_time or 0)
        return max(int(self.recovery_timeout - elapsed), 0)

    def can_execute(self) -> bool:
        """
        Raises:
            CircuitBreakerOpenError: circuit is OPEN and still cooling down
        """
        if self.state == self.OPEN:
            if self.remaining() > 0:
                raise CircuitBreakerOpenError(recovery_time=self.remaining())
            logger.info("Circuit breaker transitioning to HALF_OPEN")
            self.state = self.HALF_OPEN
        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (trial call failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini Service
# ══════════════════════════════════════════════════════════════════════════

class GeminiService(Summarizer):
    """
    Summarizer backed by google-generativeai.

    With no API key the service stays unconfigured: is_available is False
    and summarize() raises LLMServiceError instead of calling out.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        api_key = settings.gemini_api_key if api_key is None else api_key
        self.model_name = model_name or settings.gemini_model
        self.model: Optional[genai.GenerativeModel] = None

        if api_key and api_key != "your_gemini_api_key_here":
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(self.model_name)
            logger.info("GeminiService initialized with model=%s", self.model_name)
        else:
            logger.warning("GEMINI_API_KEY not configured. AI summaries will be unavailable.")

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    @property
    def is_available(self) -> bool:
        return self.model is not None

    async def summarize(self, text: str) -> str:
        if self.model is None:
            raise LLMServiceError(
                message="AI summarization is not configured. Please set GEMINI_API_KEY.",
                context={"model": self.model_name},
            )

        if not text or not text.strip():
            return ""

        self.circuit_breaker.can_execute()

        start_time = time.time()
        try:
            response = await self.model.generate_content_async(f"{SUMMARY_PROMPT}{text}")
            summary = (response.text or "").strip()
        except Exception as e:
            # SDK errors have no common base class
            self.circuit_breaker.record_failure()
            logger.error("Gemini summary failed: %s", str(e), exc_info=True)
            raise LLMServiceError(
                message="Failed to generate summary. Please try again later.",
                context={"error_type": type(e).__name__},
            ) from e

        self.circuit_breaker.record_success()
        logger.info(
            "Gemini summary completed in %.0fms (%d chars in, %d out)",
            (time.time() - start_time) * 1000,
            len(text),
            len(summary),
        )
        return summary

    def status(self) -> str:
        """available | unconfigured | circuit_open"""
        if self.model is None:
            return "unconfigured"
        if self.circuit_breaker.state == CircuitBreaker.OPEN and self.circuit_breaker.remaining() > 0:
            return "circuit_open"
        return "available"

    async def health_check(self) -> bool:
        """Lists models (no token cost) to confirm key and connectivity."""
        if self.model is None:
            return False
        try:
            models = genai.list_models()
            target = f"models/{self.model_name}"
            if target not in [m.name for m in models]:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the circuit breaker state shared by all requests
gemini_service = GeminiService()
