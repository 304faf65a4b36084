"""Image proxy router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from services.store_service.dependencies import get_media_proxy
from services.store_service.services.media_proxy import MediaProxy

router = APIRouter(tags=["media"])


@router.get("/image_proxy", response_class=Response)
async def image_proxy(
    request: Request,
    file_token: Optional[str] = Query(None),
    proxy: MediaProxy = Depends(get_media_proxy),
):
    """Serve a catalog attachment image, cached for 24 hours."""
    image = await proxy.resolve_image(file_token, cache_key=str(request.url))
    return Response(
        content=image.body,
        status_code=image.status_code,
        headers=image.headers,
        media_type=image.media_type,
    )
