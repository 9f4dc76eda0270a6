from typing import Any, Dict, List, Optional

import httpx
import structlog
from openai import AsyncOpenAI, OpenAIError

from .config import Settings

logger = structlog.get_logger()

# Fixed generation parameters; callers only pick messages and model.
TEMPERATURE = 0.7
MAX_TOKENS = 4000
TOP_P = 1


class ChatCompletionService:
    """Single-shot chat completions against an OpenAI-compatible upstream."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.default_model = settings.UPSTREAM_MODEL
        self._http_client = http_client
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        # Built on first use: a missing key fails the request, not startup.
        # The key is always passed explicitly so OPENAI_API_KEY is never picked up.
        if self._client is None:
            if not self.settings.UPSTREAM_API_KEY:
                raise OpenAIError("UPSTREAM_API_KEY is not configured on the proxy")
            kwargs: Dict[str, Any] = {
                "api_key": self.settings.UPSTREAM_API_KEY,
                "base_url": self.settings.UPSTREAM_BASE_URL,
                "max_retries": 0,
            }
            if self.settings.UPSTREAM_TIMEOUT is not None:
                kwargs["timeout"] = self.settings.UPSTREAM_TIMEOUT
            if self._http_client is not None:
                kwargs["http_client"] = self._http_client
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def complete(self, messages: List[Any], model: Optional[str] = None) -> Dict[str, Any]:
        """
        Issue exactly one upstream call and return the completion body as sent.
        Upstream errors propagate to the caller for classification.
        """
        completion = await self.client.chat.completions.create(
            messages=messages,
            model=model or self.default_model,
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
            top_p=TOP_P,
            stream=False,
        )
        logger.info("chat.upstream_ok", model=model or self.default_model, id=completion.id)
        # exclude_unset keeps the body to the fields the provider actually returned
        return completion.to_dict()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
