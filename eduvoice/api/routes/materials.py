"""API routes for study material upload and management."""

import base64
import logging
from uuid import UUID

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from eduvoice.api.deps import AppSettings, CurrentUser, Gateway, Store, verify_ownership_or_404
from eduvoice.db.models import MaterialType
from eduvoice.schemas.materials import (
    ImageAnalysisRequest,
    ImageAnalysisResponse,
    MaterialListResponse,
    MaterialRead,
    YouTubeMaterialRequest,
)
from eduvoice.services.material_processor import (
    VIDEO_PLACEHOLDER,
    YOUTUBE_PLACEHOLDER,
    UnsupportedMaterialError,
    material_processor,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/materials", tags=["materials"])


# =============================================================================
# UPLOAD
# =============================================================================


@router.post("/upload", response_model=MaterialRead, status_code=status.HTTP_201_CREATED)
async def upload_material(
    current_user: CurrentUser,
    storage: Store,
    gateway: Gateway,
    settings: AppSettings,
    file: UploadFile = File(...),
) -> MaterialRead:
    """
    Upload a file and extract its content synchronously.

    Type is chosen by MIME type:
    - text/*          -> text, decoded as UTF-8
    - application/pdf -> pdf, text extracted with PyMuPDF
    - image/*         -> image, described by the vision model
    - video/*         -> video, placeholder content
    """
    try:
        material_type = material_processor.classify(file.content_type)
    except UnsupportedMaterialError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    # Read one byte past the limit so oversize files are detected without buffering all of them
    limit = settings.max_upload_size_bytes
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {limit // (1024 * 1024)} MB upload limit",
        )
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    filename = file.filename or "upload"
    file_metadata = {"size": len(data), "mimetype": file.content_type}

    if material_type == MaterialType.TEXT:
        content = material_processor.decode_text(data)
    elif material_type == MaterialType.PDF:
        extraction = material_processor.extract_pdf(data)
        if extraction["status"] != "success":
            logger.warning("PDF extraction failed for %s: %s", filename, extraction.get("error"))
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Could not extract text from PDF",
            )
        content = extraction["text"]
        file_metadata["page_count"] = extraction["page_count"]
    elif material_type == MaterialType.IMAGE:
        completion = await gateway.analyze_image(
            base64.b64encode(data).decode("ascii"), file.content_type or "image/jpeg"
        )
        content = completion.text
    else:
        content = VIDEO_PLACEHOLDER.format(filename=filename)

    material = await storage.create_material(
        user_id=current_user.id,
        filename=filename,
        type=material_type.value,
        content=content,
        file_metadata=file_metadata,
    )
    logger.info(
        "Stored %s material %s for user %s (%d bytes)",
        material_type.value,
        material.id,
        current_user.id,
        len(data),
    )
    return MaterialRead.model_validate(material)


@router.post("/youtube", response_model=MaterialRead, status_code=status.HTTP_201_CREATED)
async def add_youtube_material(
    request: YouTubeMaterialRequest,
    current_user: CurrentUser,
    storage: Store,
) -> MaterialRead:
    """Register a YouTube video. Transcripts are not fetched; content is a placeholder."""
    video_id = material_processor.youtube_video_id(request.url)
    if video_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid YouTube URL")

    material = await storage.create_material(
        user_id=current_user.id,
        filename=f"YouTube Video - {video_id}",
        type=MaterialType.YOUTUBE.value,
        content=YOUTUBE_PLACEHOLDER.format(url=request.url, video_id=video_id),
        file_metadata={"url": request.url, "video_id": video_id},
    )
    logger.info("Stored youtube material %s for user %s", material.id, current_user.id)
    return MaterialRead.model_validate(material)


@router.post("/analyze", response_model=ImageAnalysisResponse)
async def analyze_image(
    request: ImageAnalysisRequest,
    current_user: CurrentUser,
    gateway: Gateway,
) -> ImageAnalysisResponse:
    """Describe an inline image with the vision model. Nothing is stored."""
    completion = await gateway.analyze_image(request.image_base64, request.mime_type)
    return ImageAnalysisResponse(analysis=completion.text, model=completion.model)


# =============================================================================
# MATERIAL MANAGEMENT
# =============================================================================


@router.get("", response_model=MaterialListResponse)
async def list_materials(current_user: CurrentUser, storage: Store) -> MaterialListResponse:
    """List the user's materials, newest first."""
    materials = await storage.get_materials_by_user(current_user.id)
    return MaterialListResponse(
        materials=[MaterialRead.model_validate(m) for m in materials],
        total=len(materials),
    )


@router.get("/{material_id}", response_model=MaterialRead)
async def get_material(
    material_id: UUID,
    current_user: CurrentUser,
    storage: Store,
) -> MaterialRead:
    """Get a material with its extracted content."""
    material = await storage.get_material(material_id)
    verify_ownership_or_404(material, current_user, "Material not found")
    return MaterialRead.model_validate(material)


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(
    material_id: UUID,
    current_user: CurrentUser,
    storage: Store,
) -> None:
    """
    Delete a material.

    Conversations, mind maps and quizzes that list its id keep the stale reference.
    """
    material = await storage.get_material(material_id)
    verify_ownership_or_404(material, current_user, "Material not found")
    await storage.delete_material(material_id)
