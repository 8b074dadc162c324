"""Shared HTTP plumbing for language-generation backends."""

import asyncio
from abc import abstractmethod
from typing import Any, Optional

import httpx

from release_notifier.config import LLMConfig
from release_notifier.core import Failure, FailureKind, GenerationResult, TextGenerator
from release_notifier.logging_config import get_logger

logger = get_logger(__name__)


class HttpTextGenerator(TextGenerator):
    """Backend reached over a JSON HTTP API with bounded retries.

    Subclasses describe the request and where the text sits in the reply;
    this class owns retries, backoff and error classification.
    """

    provider = "generic"
    default_base_url = ""

    def __init__(self, config: LLMConfig, api_key: str) -> None:
        self.config = config
        self.api_key = api_key
        self.model = config.model
        self.base_url = (config.base_url or self.default_base_url).rstrip("/")
        self.max_retries = max(1, config.max_retries)
        self.initial_retry_delay = config.initial_retry_delay

    @abstractmethod
    def _endpoint(self) -> str:
        """Full URL to POST to."""

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        """Authentication and content headers."""

    @abstractmethod
    def _payload(self, system: str, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
        """Request body."""

    @abstractmethod
    def _extract_text(self, data: dict[str, Any]) -> str:
        """Pull generated text out of a successful response body."""

    async def generate(
        self, system: str, prompt: str, schema: dict[str, Any]
    ) -> GenerationResult:
        """Call the backend, returning a failure instead of raising."""
        payload = self._payload(system, prompt, schema)
        last_failure: Optional[Failure] = None

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                    response = await client.post(
                        self._endpoint(), headers=self._headers(), json=payload
                    )
            except httpx.TimeoutException as e:
                last_failure = Failure(FailureKind.TIMEOUT, str(e) or type(e).__name__)
            except httpx.RequestError as e:
                last_failure = Failure(FailureKind.NETWORK, str(e) or type(e).__name__)
            else:
                if response.status_code == 200:
                    return self._parse_success(response)

                last_failure = self._classify_error(response)
                if not last_failure.retryable:
                    return GenerationResult(failure=last_failure)

            if attempt < self.max_retries - 1:
                delay = self._get_retry_delay(last_failure, attempt)
                logger.warning(
                    "llm_retry",
                    provider=self.provider,
                    failure=last_failure.kind.value,
                    delay=round(delay, 1),
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                )
                await asyncio.sleep(delay)

        return GenerationResult(failure=last_failure)

    def _parse_success(self, response: httpx.Response) -> GenerationResult:
        try:
            text = self._extract_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            return GenerationResult(failure=Failure(
                FailureKind.MALFORMED_OUTPUT, f"unexpected response shape: {e}"
            ))
        return GenerationResult(text=text)

    def _classify_error(self, response: httpx.Response) -> Failure:
        status = response.status_code
        detail = f"HTTP {status}: {response.text[:200]}"

        if status == 429:
            return Failure(
                FailureKind.RATE_LIMITED, detail, retry_after=self._retry_after(response)
            )
        if status >= 500:
            return Failure(FailureKind.SERVER, detail)
        if status in (401, 403):
            return Failure(FailureKind.AUTH, detail)
        if status == 404:
            return Failure(FailureKind.NOT_FOUND, detail)
        return Failure(FailureKind.REJECTED, detail)

    @staticmethod
    def _retry_after(response: httpx.Response) -> Optional[float]:
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return None

    def _get_retry_delay(self, failure: Failure, attempt: int) -> float:
        """Honor a provider retry hint, otherwise back off exponentially."""
        if failure.retry_after is not None:
            return failure.retry_after
        return self.initial_retry_delay * (2 ** attempt)
