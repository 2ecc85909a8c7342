"""
Process-wide owner of the rulebook index.

The index is built lazily on the first ``ensure_index()`` call and cached
for the lifetime of the process. Concurrent first callers share a single
in-flight build task; a failed build leaves the manager unbuilt so the
next call starts over.
"""

import asyncio
from typing import Callable, Optional

from rulebook_rag.core.logger import logger
from rulebook_rag.ingestion.chunker import split_text
from rulebook_rag.ingestion.document_loader import load_rulebook
from rulebook_rag.ingestion.embedder import BaseEmbedder
from .vector_store import RulebookIndex, build_index


class IndexManager:
    def __init__(
        self,
        document_path: str,
        embedder: BaseEmbedder,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        loader: Callable[[str], str] = load_rulebook,
    ):
        self.document_path = document_path
        self.embedder = embedder
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.loader = loader

        self._index: Optional[RulebookIndex] = None
        self._build_task: Optional[asyncio.Task] = None

    @property
    def is_built(self) -> bool:
        return self._index is not None

    async def ensure_index(self) -> RulebookIndex:
        if self._index is not None:
            return self._index

        if self._build_task is None:
            self._build_task = asyncio.create_task(self._build())
            self._build_task.add_done_callback(self._on_build_done)

        # shield: a cancelled caller must not abort the build other callers wait on
        return await asyncio.shield(self._build_task)

    async def _build(self) -> RulebookIndex:
        logger.info("Loading rulebook and generating embeddings...")
        text = await asyncio.to_thread(self.loader, self.document_path)

        passages = split_text(text, chunk_size=self.chunk_size, chunk_overlap=self.chunk_overlap)
        logger.info(f"Rulebook split into {len(passages)} passages")

        index = await build_index(passages, self.embedder)
        self._index = index
        logger.info("Vector index created and cached")
        return index

    def _on_build_done(self, task: asyncio.Task) -> None:
        self._build_task = None
        if task.cancelled():
            logger.warning("Index build cancelled; next request will rebuild")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Index build failed ({type(error).__name__}): {error}")
