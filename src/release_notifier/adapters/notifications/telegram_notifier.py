"""Telegram Bot API notification adapter."""

import asyncio
from typing import Any, Optional

import httpx

from release_notifier.core import (
    DeliveryReport,
    Failure,
    FailureKind,
    MessageChunk,
    NotificationService,
)
from release_notifier.logging_config import get_logger

logger = get_logger(__name__)


class TelegramNotifier(NotificationService):
    """Send message chunks to a Telegram chat via ``sendMessage``."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        api_base: str = "https://api.telegram.org",
        timeout: float = 30.0,
        max_attempts: int = 3,
        initial_retry_delay: float = 1.0,
        chunk_delay: float = 0.5,
    ) -> None:
        """Initialize Telegram notifier.

        Args:
            bot_token: Bot token issued by BotFather
            chat_id: Target chat, channel username or numeric id
            max_attempts: Tries per chunk, first attempt included
            chunk_delay: Pause between consecutive chunks of one release
        """
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.initial_retry_delay = initial_retry_delay
        self.chunk_delay = chunk_delay

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/bot{self.bot_token}/sendMessage"

    async def send_chunks(self, chunks: list[MessageChunk]) -> DeliveryReport:
        """Send chunks in order, stopping at the first chunk that fails for good."""
        report = DeliveryReport(total=len(chunks))
        ordered = sorted(chunks, key=lambda chunk: chunk.index)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for position, chunk in enumerate(ordered):
                if position > 0 and self.chunk_delay > 0:
                    await asyncio.sleep(self.chunk_delay)

                message_id, failure = await self._send_with_retry(client, chunk)
                if failure is not None:
                    report.failure = failure
                    logger.error(
                        "chunk_delivery_failed",
                        chunk=chunk.index + 1,
                        total=chunk.total,
                        failure=failure.kind.value,
                        detail=failure.detail[:200],
                    )
                    break

                report.sent += 1
                if message_id is not None:
                    report.message_ids.append(message_id)

        return report

    async def _send_with_retry(
        self, client: httpx.AsyncClient, chunk: MessageChunk
    ) -> tuple[Optional[int], Optional[Failure]]:
        payload = {
            "chat_id": self.chat_id,
            "text": chunk.text,
            "disable_web_page_preview": True,
        }
        failure: Optional[Failure] = None

        for attempt in range(self.max_attempts):
            try:
                response = await client.post(self.endpoint, json=payload)
            except httpx.TimeoutException as e:
                failure = Failure(FailureKind.TIMEOUT, str(e) or type(e).__name__)
            except httpx.RequestError as e:
                failure = Failure(FailureKind.NETWORK, str(e) or type(e).__name__)
            else:
                if response.status_code == 200:
                    return self._message_id(response), None

                failure = self._classify_error(response)
                if not failure.retryable:
                    return None, failure

            if attempt < self.max_attempts - 1:
                delay = self._get_retry_delay(failure, attempt)
                logger.warning(
                    "telegram_retry",
                    chunk=chunk.index + 1,
                    failure=failure.kind.value,
                    delay=round(delay, 1),
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                )
                await asyncio.sleep(delay)

        return None, failure

    def _classify_error(self, response: httpx.Response) -> Failure:
        body = self._json(response)
        description = str(body.get("description", "")) or response.text[:200]
        detail = f"HTTP {response.status_code}: {description}"
        status = response.status_code

        if status == 429:
            return Failure(
                FailureKind.RATE_LIMITED, detail, retry_after=self._retry_after(body, response)
            )
        if status >= 500:
            return Failure(FailureKind.SERVER, detail)
        if status == 401:
            return Failure(FailureKind.AUTH, detail)
        if status == 404:
            return Failure(FailureKind.NOT_FOUND, detail)
        # 400 bad chat/content, 403 bot blocked or kicked
        return Failure(FailureKind.REJECTED, detail)

    @staticmethod
    def _retry_after(body: dict[str, Any], response: httpx.Response) -> Optional[float]:
        """Telegram puts the hint in the body; proxies may use the header."""
        parameters = body.get("parameters")
        value = parameters.get("retry_after") if isinstance(parameters, dict) else None
        if value is None:
            value = response.headers.get("retry-after")
        try:
            return float(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    def _get_retry_delay(self, failure: Failure, attempt: int) -> float:
        if failure.retry_after is not None:
            return failure.retry_after
        return self.initial_retry_delay * (2 ** attempt)

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _message_id(self, response: httpx.Response) -> Optional[int]:
        result = self._json(response).get("result")
        if isinstance(result, dict):
            return result.get("message_id")
        return None
