from typing import Annotated, Literal
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from medianode.core.db import get_session
from medianode.core.security import get_principal, Principal
from medianode.modules.media.schemas import MediaListOut, SuccessOut
from medianode.modules.media.service import MediaService, MediaExistsError, NotOwnerError
from medianode.platform.ports.content_store import ContentStoreError, ManifestNotFoundError

router = APIRouter()

MediaId = Annotated[str, Path(pattern=r"^\w+$", max_length=128)]

def svc(session: AsyncSession = Depends(get_session)) -> MediaService:
    return MediaService(session)

@router.post("/add/{media_id}", response_model=SuccessOut)
async def add_media(
    request: Request,
    media_id: MediaId,
    service: MediaService = Depends(svc),
):
    """
    Register a published media folder. The optional request body is the
    binary .key file for its stream.
    """
    body = await request.body()
    key = body if len(body) > 0 else None
    try:
        await service.register(media_id, key)
    except ManifestNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except MediaExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except (ContentStoreError, SQLAlchemyError) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Cannot register media {media_id}. {e}")
    return {"success": True}

@router.delete("/remove/{media_id}", response_model=SuccessOut)
async def remove_media(
    media_id: MediaId,
    principal: Principal = Depends(get_principal),
    service: MediaService = Depends(svc),
):
    try:
        await service.remove(media_id, principal.admin_nft)
    except NotOwnerError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return {"success": True}

@router.get("/list", response_model=MediaListOut)
async def list_media(
    page_num: int = Query(1, alias="pageNum", ge=1),
    files_per_page: int = Query(10, alias="filesPerPage", ge=1, le=100),
    sort_by: Literal["creationDate", "title", "author", "contractAddress"] = Query("creationDate", alias="sortBy"),
    sort: Literal["-1", "1"] = Query("-1"),
    search_string: str | None = Query(None, alias="searchString", max_length=256),
    principal: Principal = Depends(get_principal),
    service: MediaService = Depends(svc),
):
    items = await service.list(
        principal.admin_nft,
        page_num=page_num,
        files_per_page=files_per_page,
        sort_by=sort_by,
        sort=int(sort),
        search=search_string,
    )
    return {"success": True, "list": items}
