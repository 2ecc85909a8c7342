from typing import List, Optional, Tuple

from rulebook_rag.ingestion.chunker import Passage
from rulebook_rag.ingestion.embedder import BaseEmbedder
from .vector_store import RulebookIndex, query_index

CONTEXT_SEPARATOR = "\n\n"


def format_passages(passages: List[Passage]) -> str:
    """Join passage texts in rank order; overlapping text is kept as is."""
    return CONTEXT_SEPARATOR.join(p.text for p in passages)


class Retriever:
    def __init__(self, embedder: BaseEmbedder, top_k: int = 4):
        self.embedder = embedder
        self.top_k = top_k

    async def retrieve_topk(
        self, index: RulebookIndex, query: str, top_k: Optional[int] = None
    ) -> List[Tuple[Passage, float]]:
        k = self.top_k if top_k is None else top_k
        return await query_index(index, self.embedder, query, top_k=k)

    async def retrieve(self, index: RulebookIndex, query: str, top_k: Optional[int] = None) -> str:
        results = await self.retrieve_topk(index, query, top_k=top_k)
        return format_passages([passage for passage, _ in results])
