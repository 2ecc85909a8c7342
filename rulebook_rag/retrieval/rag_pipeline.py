from rulebook_rag.core.logger import logger
from rulebook_rag.core.monitor import track_latency
from rulebook_rag.generation.composer import AnswerComposer
from .index_manager import IndexManager
from .retriever import Retriever


class RAGPipeline:
    """Per-request flow: cached index, then retrieval, then generation."""

    def __init__(self, manager: IndexManager, retriever: Retriever, composer: AnswerComposer, top_k: int = 4):
        self.manager = manager
        self.retriever = retriever
        self.composer = composer
        self.top_k = top_k

    @track_latency("rag.ask")
    async def ask(self, question: str) -> str:
        index = await self.manager.ensure_index()

        context = await self.retriever.retrieve(index, question, top_k=self.top_k)
        logger.info(f"Retrieved context ({len(context)} chars) for question")

        logger.info("Generating LLM answer...")
        return await self.composer.answer(question, context)
