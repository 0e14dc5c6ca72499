import logging
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import JSONResponse
from medianode.core.config import settings
from medianode.core.security import get_principal, Principal
from medianode.modules.realtime.sessions import session_registry
from medianode.modules.uploads.pipeline import UploadPipeline, UploadContext, UploadState, finish_upload
from medianode.modules.uploads.service import save_upload, new_upload_id, UploadTooLargeError

router = APIRouter()
log = logging.getLogger(__name__)

@router.post("/upload")
async def upload_video(
    background_tasks: BackgroundTasks,
    video: UploadFile = File(...),
    title: str = Form(..., min_length=1, max_length=512),
    description: str | None = Form(None),
    contract_address: str | None = Form(None, alias="contractAddress"),
    socket_session_id: str | None = Query(None, alias="socketSessionId"),
    principal: Principal = Depends(get_principal),
):
    """
    Accept a video, generate its thumbnails, then acknowledge. Transcoding,
    encryption, publishing and persistence continue in the background and
    report on the progress socket named by socketSessionId.
    """
    if not principal.can_publish:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"success": False, "message": "You don't have permission to upload the files."},
        )
    if not (video.content_type or "").startswith("video/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only video files can be uploaded")

    upload_id = new_upload_id()
    try:
        source = await save_upload(video, settings.UPLOAD_DIR, upload_id, max_bytes=settings.MAX_UPLOAD_BYTES)
    except UploadTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))

    pipeline = UploadPipeline(
        UploadContext(
            upload_id=upload_id,
            source_path=source,
            dest=settings.UPLOAD_DIR,
            original_name=video.filename or upload_id,
            title=title,
            author=principal.admin_nft,
            description=description or None,
            contract_address=contract_address,
        ),
        session_registry.notifier_for(socket_session_id),
    )
    await pipeline.run(until=UploadState.THUMBNAILS_GENERATED)
    background_tasks.add_task(finish_upload, pipeline)
    return {"success": True, "result": upload_id}
