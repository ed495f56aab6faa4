# infrastructure/embedding_services.py
"""Embedding generation: remote Hugging Face inference or local sentence-transformers"""
import asyncio
import logging
import numpy as np
from typing import Any, List, Optional

import httpx

from core.interfaces import IEmbeddingService
from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)


def _as_vectors(response: Any) -> List[List[float]]:
    """
    Normalize feature-extraction output to a list of vectors.

    The endpoint answers with a list of vectors for batched input and a bare
    vector for a single string.
    """
    if isinstance(response, list) and response and isinstance(response[0], list):
        return response
    if isinstance(response, list) and response and isinstance(response[0], (int, float)):
        return [response]
    raise ValueError(f"Unexpected feature-extraction response: {type(response).__name__}")


class HuggingFaceInferenceEmbedding(IEmbeddingService):
    """
    Feature extraction through the Hugging Face inference router.

    Raises on transport errors and malformed payloads; fallback vectors are the
    EmbeddingPipeline's concern.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = settings.EMBEDDING_MODEL_NAME,
        dimension: int = settings.VECTOR_SIZE,
        base_url: str = settings.HF_INFERENCE_URL,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.model_name = model_name
        self.dimension = dimension
        self._url = f"{base_url.rstrip('/')}/{model_name}/pipeline/feature-extraction"
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = client

    async def _post(self, inputs: Any) -> Any:
        if self._client is not None:
            response = await self._client.post(self._url, json={"inputs": inputs}, headers=self._headers)
        else:
            # Timeouts are enforced by the caller's wait_for race
            async with httpx.AsyncClient(timeout=None) as client:
                response = await client.post(self._url, json={"inputs": inputs}, headers=self._headers)
        response.raise_for_status()
        return response.json()

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        vectors = _as_vectors(await self._post(texts))
        if len(vectors) != len(texts):
            raise ValueError(f"Expected {len(texts)} embeddings, got {len(vectors)}")
        return vectors

    async def generate_query_embedding(self, query: str) -> List[float]:
        return _as_vectors(await self._post(query))[0]


class SentenceTransformerEmbedding(IEmbeddingService):
    """
    Local sentence transformer with L2 normalization (unit vectors).

    With unit vectors cosine similarity equals the dot product, so scores from
    the cosine index are comparable across documents.
    """

    _model = None  # Singleton cache
    _model_name: Optional[str] = None

    def __init__(self, model_name: str = settings.EMBEDDING_MODEL_NAME):
        """Initializes the service, loading the heavy model only once."""
        from sentence_transformers import SentenceTransformer

        if SentenceTransformerEmbedding._model is None or SentenceTransformerEmbedding._model_name != model_name:
            try:
                logger.info(f"Attempting to load model {model_name} from local cache...")
                SentenceTransformerEmbedding._model = SentenceTransformer(model_name, local_files_only=True)
                logger.info(f"Successfully loaded {model_name} from local cache.")
            except Exception as e:
                logger.warning(
                    f"Model {model_name} not found in cache. Attempting online download. "
                    f"This may take a few minutes. Error: {e}"
                )
                SentenceTransformerEmbedding._model = SentenceTransformer(model_name)
                logger.info(f"Successfully downloaded and loaded {model_name}.")
            SentenceTransformerEmbedding._model_name = model_name

        self.model = SentenceTransformerEmbedding._model
        self.model_name = model_name
        self.dimension = self.model.get_sentence_embedding_dimension()

    def _l2_normalize(self, arr: np.ndarray) -> np.ndarray:
        """L2 normalize (N, D) vectors to unit length."""
        norms = np.linalg.norm(arr, axis=1, keepdims=True)
        norms[norms == 0] = 1e-12  # Avoid division by zero
        return arr / norms

    async def generate_embeddings(self, texts: List[str]) -> List[List[float]]:
        raw = await asyncio.to_thread(self.model.encode, texts, convert_to_tensor=False)
        return self._l2_normalize(np.array(raw, dtype="float32")).tolist()

    async def generate_query_embedding(self, query: str) -> List[float]:
        raw = await asyncio.to_thread(self.model.encode, query, convert_to_tensor=False)
        normalized = self._l2_normalize(np.array(raw, dtype="float32").reshape(1, -1))
        return normalized[0].tolist()
