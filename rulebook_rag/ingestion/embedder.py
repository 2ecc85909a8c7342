"""
Embedding providers.

Both providers return a float32 matrix with one row per input text and
raise EmbeddingServiceError when the provider fails or hands back
something that is not one equal-length numeric vector per text.
"""

import asyncio
from numbers import Real
from typing import Any, List, Optional

import numpy as np
import requests

from rulebook_rag.core.config import Settings
from rulebook_rag.core.exception import EmbeddingServiceError
from rulebook_rag.core.logger import logger


def to_embedding_matrix(raw: Any, expected_count: int) -> np.ndarray:
    """Validate a provider response and convert it to a (count, dim) matrix."""
    if not isinstance(raw, (list, tuple, np.ndarray)):
        raise EmbeddingServiceError(f"Expected a list of vectors, got {type(raw).__name__}")
    if len(raw) != expected_count:
        raise EmbeddingServiceError(f"Expected {expected_count} vectors, got {len(raw)}")
    if expected_count == 0:
        return np.zeros((0, 0), dtype=np.float32)

    dim = None
    for i, vec in enumerate(raw):
        if not isinstance(vec, (list, tuple, np.ndarray)) or len(vec) == 0:
            raise EmbeddingServiceError(f"Vector {i} is not a non-empty list of numbers")
        if not all(isinstance(v, (Real, np.number)) and not isinstance(v, bool) for v in vec):
            raise EmbeddingServiceError(f"Vector {i} contains non-numeric values")
        if dim is None:
            dim = len(vec)
        elif len(vec) != dim:
            raise EmbeddingServiceError(f"Vector {i} has dimension {len(vec)}, expected {dim}")

    matrix = np.asarray(raw, dtype=np.float32)
    if not np.all(np.isfinite(matrix)):
        raise EmbeddingServiceError("Embedding vectors contain NaN or infinite values")
    return matrix


class BaseEmbedder:
    """Async embedding interface; blocking work runs in a worker thread."""

    def embed_texts_sync(self, texts: List[str]) -> np.ndarray:
        raise NotImplementedError

    async def embed_texts(self, texts: List[str]) -> np.ndarray:
        return await asyncio.to_thread(self.embed_texts_sync, texts)

    async def embed_query(self, text: str) -> np.ndarray:
        return (await self.embed_texts([text]))[0]


class HFInferenceEmbedder(BaseEmbedder):
    """Hugging Face Inference feature-extraction endpoint."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        base_url: str = "https://router.huggingface.co/hf-inference/models",
        batch_size: int = 32,
        timeout: Optional[float] = None,
    ):
        self.model_name = model_name
        self.api_url = f"{base_url.rstrip('/')}/{model_name}/pipeline/feature-extraction"
        self.headers = {"Authorization": f"Bearer {api_key}"}
        self.batch_size = batch_size
        self.timeout = timeout

    def _post(self, batch: List[str]) -> Any:
        try:
            res = requests.post(
                self.api_url,
                headers=self.headers,
                json={"inputs": batch},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EmbeddingServiceError(e)

        if res.status_code != 200:
            logger.error(f"HF embedding failed: {res.status_code} {res.text[:200]}")
            raise EmbeddingServiceError(f"Embedding provider returned HTTP {res.status_code}")

        try:
            return res.json()
        except ValueError:
            raise EmbeddingServiceError("Embedding provider returned a non-JSON body")

    def embed_texts_sync(self, texts: List[str]) -> np.ndarray:
        if not texts:
            return np.zeros((0, 0), dtype=np.float32)

        logger.info(f"Embedding {len(texts)} texts with {self.model_name}")
        matrices = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i : i + self.batch_size]
            matrices.append(to_embedding_matrix(self._post(batch), len(batch)))

        dims = {m.shape[1] for m in matrices}
        if len(dims) != 1:
            raise EmbeddingServiceError(f"Inconsistent embedding dimensions across batches: {sorted(dims)}")
        return np.vstack(matrices)


class LocalEmbedder(BaseEmbedder):
    """In-process sentence-transformers model."""

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2", batch_size: int = 32):
        from sentence_transformers import SentenceTransformer

        self.model_name = model_name
        self.batch_size = batch_size
        logger.info(f"Loading embedding model: {model_name}")
        self.model = SentenceTransformer(model_name)

    def embed_texts_sync(self, texts: List[str]) -> np.ndarray:
        if not texts:
            return np.zeros((0, 0), dtype=np.float32)
        logger.info(f"Embedding {len(texts)} texts locally")
        try:
            raw = self.model.encode(texts, batch_size=self.batch_size, show_progress_bar=False)
        except Exception as e:
            raise EmbeddingServiceError(e)
        return to_embedding_matrix(raw.tolist(), len(texts))


def get_embedder(settings: Settings) -> BaseEmbedder:
    """Build the embedding provider selected by EMBEDDING_BACKEND."""
    if settings.EMBEDDING_BACKEND == "local":
        return LocalEmbedder(settings.EMBEDDING_MODEL, batch_size=settings.EMBEDDING_BATCH_SIZE)

    return HFInferenceEmbedder(
        api_key=settings.HF_API_KEY,
        model_name=settings.EMBEDDING_MODEL,
        base_url=settings.HF_INFERENCE_URL,
        batch_size=settings.EMBEDDING_BATCH_SIZE,
        timeout=settings.PROVIDER_TIMEOUT,
    )
