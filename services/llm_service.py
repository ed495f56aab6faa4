# services/llm_service.py
import logging
from typing import Any, Dict, Optional

import httpx

from config import settings
from core.exceptions import InvalidModelResponse, ModelInvocationError
from core.interfaces import IChatModelClient

logger = logging.getLogger(settings.LOGGER_NAME)


class HuggingFaceChatClient(IChatModelClient):
    """Chat completions through the Hugging Face router (OpenAI-compatible)."""

    def __init__(
        self,
        api_key: str,
        url: str = settings.HF_CHAT_URL,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Args:
            api_key: Hugging Face token.
            url: Chat completions endpoint.
            client: Shared AsyncClient; a short-lived one is opened per call when omitted.
        """
        self.url = url
        self._has_key = bool(api_key)
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._client = client

    async def complete(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self._has_key:
            raise ModelInvocationError("HUGGINGFACE_API_KEY is required", model=model)
        body = {**payload, "model": model, "stream": False}
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=body, headers=self._headers)
            else:
                # Per-attempt timeouts are raced by the fallback invoker
                async with httpx.AsyncClient(timeout=None) as client:
                    response = await client.post(self.url, json=body, headers=self._headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Chat API returned an error for {model}: {e.response.status_code} {e.response.text[:200]}")
            raise ModelInvocationError(f"LLM error: {e.response.status_code}", model=model) from e
        except httpx.RequestError as e:
            logger.error(f"Cannot reach chat API for {model}: {e}")
            raise ModelInvocationError(f"Cannot connect to LLM service: {e}", model=model) from e

        try:
            return response.json()
        except ValueError as e:
            raise InvalidModelResponse(f"Non-JSON response from {model}", model=model) from e
