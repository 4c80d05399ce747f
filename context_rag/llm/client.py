"""LLM client interface and implementations."""

import time
from abc import ABC, abstractmethod

import httpx

from context_rag.config import LLMSettings, get_settings
from context_rag.exceptions import ErrorCode, LLMError
from context_rag.llm.models import GenerationResult, Message, Role
from context_rag.logging_config import get_logger
from context_rag.observability.metrics import track_llm_request

logger = get_logger(__name__)


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text from messages.

        Args:
            messages: Conversation messages.
            temperature: Sampling temperature override.
            max_tokens: Maximum tokens override.

        Returns:
            GenerationResult with generated text.

        Raises:
            LLMError: If generation fails.
        """
        ...

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text from a user prompt and optional system prompt."""
        messages: list[Message] = []

        if system_prompt:
            messages.append(Message(role=Role.SYSTEM, content=system_prompt))

        messages.append(Message(role=Role.USER, content=prompt))

        return await self.generate(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name."""
        ...


class OpenAICompatibleClient(LLMClient):
    """LLM client for OpenAI-compatible chat completions APIs.

    Works with the OpenAI API, vLLM, Ollama and similar servers.
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the OpenAI-compatible client.

        Args:
            settings: LLM configuration.
            client: HTTP client (for testing).
        """
        self._settings = settings or get_settings().llm
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    def _headers(self) -> dict[str, str]:
        api_key = self._settings.api_key.get_secret_value()
        if api_key and api_key != "not-required":
            return {"Authorization": f"Bearer {api_key}"}
        return {}

    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text using the chat completions API."""
        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/chat/completions"

        payload = {
            "model": self._settings.model,
            "messages": [msg.to_payload() for msg in messages],
            "temperature": (
                self._settings.temperature if temperature is None else temperature
            ),
            "max_tokens": max_tokens or self._settings.max_tokens,
        }

        start = time.perf_counter()
        try:
            result = await self._request(client, url, payload)
        except LLMError:
            track_llm_request(
                model=self._settings.model,
                duration=time.perf_counter() - start,
                prompt_tokens=0,
                completion_tokens=0,
                success=False,
            )
            raise

        track_llm_request(
            model=result.model,
            duration=time.perf_counter() - start,
            prompt_tokens=result.prompt_tokens,
            completion_tokens=result.completion_tokens,
        )
        return result

    async def _request(
        self,
        client: httpx.AsyncClient,
        url: str,
        payload: dict[str, object],
    ) -> GenerationResult:
        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()

        except httpx.TimeoutException as e:
            logger.error(f"LLM request timed out: {e}")
            raise LLMError(
                "LLM request timed out",
                code=ErrorCode.LLM_TIMEOUT,
                details={"timeout": self._settings.timeout},
            ) from e

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"LLM request failed: {status}")

            if status == 429:
                raise LLMError(
                    "Rate limit exceeded or quota reached",
                    code=ErrorCode.LLM_RATE_LIMIT,
                    details={"status_code": status},
                ) from e
            if status == 401:
                raise LLMError(
                    "LLM authentication failed, check the API key",
                    code=ErrorCode.LLM_SERVICE_ERROR,
                    details={"status_code": status},
                ) from e

            raise LLMError(
                f"LLM service returned {status}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"status_code": status},
            ) from e

        except httpx.RequestError as e:
            logger.error(f"LLM connection error: {e}")
            raise LLMError(
                f"Failed to connect to LLM service: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"url": url},
            ) from e

        try:
            data = response.json()
            choice = data["choices"][0]
            content = choice["message"]["content"] or ""
            usage = data.get("usage") or {}

            result = GenerationResult(
                content=content.strip(),
                model=data.get("model", self._settings.model),
                finish_reason=choice.get("finish_reason"),
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            )

        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(
                f"Invalid response from LLM: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        if not result.content and result.finish_reason:
            logger.info(
                f"LLM returned no text (finish_reason={result.finish_reason})",
                extra={"model": result.model},
            )
        return result
