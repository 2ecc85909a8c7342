from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from rulebook_rag.core.exception import InvalidRequestError, RAGException
from rulebook_rag.core.logger import logger
from rulebook_rag.retrieval.rag_pipeline import RAGPipeline

router = APIRouter()


class AskResponse(BaseModel):
    answer: str


def parse_question(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object.")

    question = payload.get("question")
    if not isinstance(question, str) or not question.strip():
        raise InvalidRequestError("'question' must be a non-empty string.")
    return question


def get_pipeline(request: Request) -> RAGPipeline:
    return request.app.state.pipeline


@router.post("/ask", response_model=AskResponse)
async def ask(request: Request):
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidRequestError("Request body must be valid JSON.")

    question = parse_question(payload)
    logger.info(f"Incoming question: {question!r}")

    try:
        answer = await get_pipeline(request).ask(question)
    except RAGException:
        raise
    except Exception as e:
        logger.exception("Answering failed")
        raise RAGException(e)

    return AskResponse(answer=answer)
