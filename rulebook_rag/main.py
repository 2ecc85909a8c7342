import time
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rulebook_rag.api import ask, health
from rulebook_rag.core.config import Settings, settings as default_settings
from rulebook_rag.core.exception import InvalidRequestError, MissingCredentialError, RAGException
from rulebook_rag.core.logger import logger
from rulebook_rag.generation.composer import AnswerComposer
from rulebook_rag.generation.llm import get_llm_client
from rulebook_rag.ingestion.embedder import BaseEmbedder, get_embedder
from rulebook_rag.retrieval.index_manager import IndexManager
from rulebook_rag.retrieval.rag_pipeline import RAGPipeline
from rulebook_rag.retrieval.retriever import Retriever


def create_app(
    settings: Optional[Settings] = None,
    embedder: Optional[BaseEmbedder] = None,
    composer: Optional[AnswerComposer] = None,
) -> FastAPI:
    settings = settings or default_settings

    if not (settings.HF_API_KEY or "").strip():
        raise MissingCredentialError("HF_API_KEY not set. Please set it before running.")

    embedder = embedder or get_embedder(settings)
    composer = composer or AnswerComposer(get_llm_client(settings))

    manager = IndexManager(
        settings.RULEBOOK_PATH,
        embedder,
        chunk_size=settings.CHUNK_SIZE,
        chunk_overlap=settings.CHUNK_OVERLAP,
    )
    retriever = Retriever(embedder, top_k=settings.TOP_K)

    app = FastAPI(title=settings.APP_NAME)
    app.state.index_manager = manager
    app.state.pipeline = RAGPipeline(manager, retriever, composer, top_k=settings.TOP_K)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed:.2f} ms)")
        return response

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        logger.warning(f"Rejected request: {exc}")
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RAGException)
    async def rag_error_handler(request: Request, exc: RAGException):
        logger.error(f"{type(exc).__name__} while processing request: {exc}")
        return JSONResponse(status_code=500, content={"error": "Server error", "details": str(exc)})

    app.include_router(health.root_router)
    app.include_router(ask.router, prefix="/api")
    app.include_router(health.router, prefix="/api")

    return app


def run():
    app = create_app()
    logger.info(f"Server running at http://localhost:{default_settings.PORT}")
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    run()
