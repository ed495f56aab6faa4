# infrastructure/entity_extractors.py
"""Token classification (NER) through the Hugging Face inference router"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.interfaces import IEntityExtractor
from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)


class HuggingFaceEntityExtractor(IEntityExtractor):
    """Returns aggregated entities ({entity_group, word, score, start, end})."""

    def __init__(
        self,
        api_key: str,
        model_name: str = settings.NER_MODEL,
        base_url: str = settings.HF_INFERENCE_URL,
        timeout: float = settings.NER_TIMEOUT_SEC,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.model_name = model_name
        self.timeout = timeout
        self._url = f"{base_url.rstrip('/')}/{model_name}/pipeline/token-classification"
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self._client = client

    async def _post(self, text: str) -> Any:
        body = {"inputs": text, "parameters": {"aggregation_strategy": "simple"}}
        if self._client is not None:
            response = await self._client.post(self._url, json=body, headers=self._headers)
        else:
            async with httpx.AsyncClient(timeout=None) as client:
                response = await client.post(self._url, json=body, headers=self._headers)
        response.raise_for_status()
        return response.json()

    async def extract(self, text: str) -> List[Dict[str, Any]]:
        if not text.strip():
            return []
        raw = await asyncio.wait_for(self._post(text), timeout=self.timeout)
        if not isinstance(raw, list):
            raise ValueError(f"Unexpected token-classification response: {type(raw).__name__}")
        return [
            {
                "entity_group": item.get("entity_group") or item.get("entity", "MISC"),
                "word": item.get("word", ""),
                "score": float(item.get("score", 0.0)),
                "start": item.get("start"),
                "end": item.get("end"),
            }
            for item in raw
            if isinstance(item, dict)
        ]
