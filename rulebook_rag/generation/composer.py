from rulebook_rag.core.logger import logger
from .llm import LLMClient
from .prompt import build_rag_messages
from .response import classify_result, extract_answer


class AnswerComposer:
    """Grounded answer generation at temperature 0."""

    temperature = 0.0

    def __init__(self, llm: LLMClient):
        self.llm = llm

    async def answer(self, question: str, context: str) -> str:
        messages = build_rag_messages(question, context)
        raw = await self.llm.agenerate_chat(messages, temperature=self.temperature)

        result = classify_result(raw)
        logger.info(f"LLM response received | kind={type(result).__name__}")
        return extract_answer(result)
