from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
import os
from typing import List

from ..models.schemas import RestyleHealth, RestyleMode, RestyleResponse, StyleOption
from ..services.errors import (
    GenerationUnavailable,
    ImageTooLarge,
    InvalidImage,
    RestyleError,
    UnknownStyle,
)
from ..services.restyle_service import RestyleService, get_restyle_service
from ..services.styles import STYLE_OPTIONS
from ..config import settings
from ..utils.logger import logger

router = APIRouter(prefix="/api", tags=["restyle"])

ERROR_STATUS = {
    UnknownStyle: 400,
    InvalidImage: 400,
    ImageTooLarge: 413,
    GenerationUnavailable: 503,
}


async def read_upload(file: UploadFile) -> bytes:
    """Validate extension, MIME type and size while reading the upload"""
    file_ext = os.path.splitext(file.filename or "")[1].lower()
    if file_ext not in settings.allowed_extensions:
        logger.warning(f"Invalid file extension: {file_ext}")
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type. Allowed: {', '.join(settings.allowed_extensions)}"
        )

    if file.content_type not in settings.allowed_mime_types:
        logger.warning(f"Invalid content type: {file.content_type}")
        raise HTTPException(status_code=400, detail="Only JPEG, PNG, and WebP images are allowed")

    # Read in chunks so oversized uploads are rejected early
    max_size = settings.max_upload_size_mb * 1024 * 1024
    content = bytearray()
    chunk_size = 1024 * 1024

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        content.extend(chunk)
        if len(content) > max_size:
            logger.warning(f"File too large: {len(content)} bytes")
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {settings.max_upload_size_mb}MB."
            )

    if not content:
        raise HTTPException(status_code=400, detail="No image file provided")

    return bytes(content)


@router.get("/styles", response_model=List[StyleOption])
async def get_styles():
    """Available interior styles"""
    return STYLE_OPTIONS


@router.get("/restyle/health", response_model=RestyleHealth)
async def restyle_health(service: RestyleService = Depends(get_restyle_service)):
    """Which generation paths are configured"""
    return RestyleHealth(
        intelligent_analysis=service.is_intelligent_mode_available(),
        providers=[provider.name for provider in service.providers],
    )


@router.post("/restyle", response_model=RestyleResponse)
async def restyle(
    image: UploadFile = File(...),
    style_key: str = Form("modern", alias="styleKey"),
    intensity: float = Form(0.5, ge=0, le=1),
    num_outputs: int = Form(3, alias="numOutputs", ge=1, le=5),
    mode: RestyleMode = Form(RestyleMode.DIRECT),
    service: RestyleService = Depends(get_restyle_service),
):
    """Restyle an uploaded room photo"""
    try:
        logger.info(f"Restyle requested: {image.filename}")
        content = await read_upload(image)

        result = await service.process(content, style_key, intensity, num_outputs, mode)

        logger.info(
            f"Restyle completed: {result.metadata.provider_name}, "
            f"{len(result.images)} image(s), analysis={result.analysis is not None}"
        )
        return result

    except HTTPException:
        raise
    except RestyleError as e:
        status_code = ERROR_STATUS.get(type(e), 500)
        logger.error(f"Restyle failed ({type(e).__name__}): {e}")
        raise HTTPException(status_code=status_code, detail=e.user_message) from e
    except Exception as e:
        logger.error(f"Restyle failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=RestyleError.user_message) from e
