from fastapi import APIRouter
from medianode.modules.media.router import router as media_router
from medianode.modules.uploads.router import router as uploads_router
from medianode.modules.streaming.router import router as streaming_router
from medianode.modules.tokens.router import router as tokens_router

api_router = APIRouter()
api_router.include_router(media_router, prefix="/media", tags=["media"])
api_router.include_router(uploads_router, tags=["uploads"])
# streaming_router serves /stream/{media_id}/...
api_router.include_router(streaming_router, tags=["stream"])
api_router.include_router(tokens_router, prefix="/tokens", tags=["tokens"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
