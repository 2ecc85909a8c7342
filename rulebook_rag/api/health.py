from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

router = APIRouter()
root_router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    return {"status": "ok", "index_built": request.app.state.index_manager.is_built}


@root_router.get("/", response_class=PlainTextResponse)
async def root():
    return 'API is running. POST /api/ask with { "question": "..." }'
