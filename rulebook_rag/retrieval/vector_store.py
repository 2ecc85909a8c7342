from typing import List, Optional, Sequence, Tuple

import faiss
import numpy as np

from rulebook_rag.core.exception import EmbeddingDimensionError, EmbeddingServiceError
from rulebook_rag.core.logger import logger
from rulebook_rag.ingestion.chunker import Passage
from rulebook_rag.ingestion.embedder import BaseEmbedder


def normalize_rows(vectors: np.ndarray) -> np.ndarray:
    """L2-normalise rows so inner product equals cosine similarity."""
    vectors = np.asarray(vectors, dtype=np.float32)
    norms = np.linalg.norm(vectors, axis=-1, keepdims=True)
    return np.divide(vectors, norms, out=np.zeros_like(vectors), where=norms > 0)


class RulebookIndex:
    """
    In-memory cosine-similarity index over rulebook passages.
    Immutable once constructed.
    """

    def __init__(self, passages: Sequence[Passage], embeddings: np.ndarray):
        passages = tuple(passages)
        embeddings = np.asarray(embeddings, dtype=np.float32)

        if passages and (embeddings.ndim != 2 or embeddings.shape[0] != len(passages)):
            raise EmbeddingServiceError("Embeddings & passages length mismatch")

        self.passages: Tuple[Passage, ...] = passages
        self.dim: Optional[int] = int(embeddings.shape[1]) if passages else None
        self.vectors = normalize_rows(embeddings) if passages else np.zeros((0, 0), dtype=np.float32)

        self._index = None
        if passages:
            self._index = faiss.IndexFlatIP(self.dim)
            self._index.add(np.ascontiguousarray(self.vectors))
        self.vectors.setflags(write=False)

        logger.info(f"FAISS index built with {len(passages)} passages (dim={self.dim})")

    def __len__(self) -> int:
        return len(self.passages)

    def search(self, query_embedding, top_k: int = 4) -> List[Tuple[Passage, float]]:
        """
        Rank passages by cosine similarity to the query vector.
        Ties keep original passage order.
        """
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")
        if not self.passages:
            return []

        query_np = np.asarray(query_embedding, dtype=np.float32).reshape(1, -1)
        if query_np.shape[1] != self.dim:
            raise EmbeddingDimensionError(
                f"Query vector has dimension {query_np.shape[1]}, index expects {self.dim}"
            )

        # score every passage so tie-breaking does not depend on faiss heap order
        total = len(self.passages)
        scores, indices = self._index.search(normalize_rows(query_np), total)

        ranked = sorted(
            ((float(score), int(idx)) for score, idx in zip(scores[0], indices[0]) if idx != -1),
            key=lambda pair: (-pair[0], pair[1]),
        )

        return [(self.passages[idx], score) for score, idx in ranked[: min(top_k, total)]]


async def build_index(passages: Sequence[Passage], embedder: BaseEmbedder) -> RulebookIndex:
    """Embed every passage and build the index; nothing is kept if embedding fails."""
    logger.info(f"Building FAISS index for {len(passages)} passages")
    if not passages:
        return RulebookIndex([], np.zeros((0, 0), dtype=np.float32))

    embeddings = await embedder.embed_texts([p.text for p in passages])
    return RulebookIndex(passages, embeddings)


async def query_index(
    index: RulebookIndex,
    embedder: BaseEmbedder,
    query_text: str,
    top_k: int = 4,
) -> List[Tuple[Passage, float]]:
    if top_k < 1:
        raise ValueError(f"top_k must be at least 1, got {top_k}")
    if len(index) == 0:
        return []

    query_embedding = await embedder.embed_query(query_text)
    return index.search(query_embedding, top_k=top_k)
