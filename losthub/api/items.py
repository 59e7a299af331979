from fastapi import APIRouter, UploadFile, File, HTTPException, Form
from typing import Optional

from losthub.models.items import CreateItemResponse, MatchesResponse
from losthub.services import item_workflow
from losthub.scripts.logging_config import get_logger

logger = get_logger("api.items")

router = APIRouter(prefix="/items", tags=["items"])

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp"}
MAX_BYTES = 10 * 1024 * 1024  # 10MB


@router.post("", response_model=CreateItemResponse, status_code=201)
async def create_item(
    name: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    status: str = Form(...),
    lastSeenLocation: str = Form(...),
    posterUid: str = Form(...),
    itemCollectLocation: Optional[str] = Form(None),
    itemImage: Optional[UploadFile] = File(None),
):
    image = None
    if itemImage is not None and itemImage.filename:
        if itemImage.content_type not in ALLOWED_CONTENT_TYPES:
            raise HTTPException(415, detail="unsupported_type")
        raw = await itemImage.read()
        if len(raw) > MAX_BYTES:
            raise HTTPException(413, detail="file_too_large")
        if raw:
            image = (raw, itemImage.filename, itemImage.content_type)

    fields = {
        "name": name,
        "description": description,
        "category": category,
        "status": status,
        "lastSeenLocation": lastSeenLocation,
        "itemCollectLocation": itemCollectLocation,
    }
    try:
        item_id = await item_workflow.create_item(fields, posterUid, image)
    except ValueError as e:
        raise HTTPException(400, detail=str(e))
    except Exception as e:
        logger.exception("item_create_error err=%s", e)
        raise HTTPException(500, detail="item_create_error")
    return CreateItemResponse(
        success=True,
        message=f"{status.strip().lower()} item successfully posted for approval.",
        itemId=item_id,
    )


@router.get("/{item_id}/matches", response_model=MatchesResponse)
async def item_matches(item_id: str):
    try:
        target, matches = await item_workflow.find_item_matches(item_id)
    except LookupError:
        raise HTTPException(404, detail="item_not_found")
    except Exception as e:
        logger.exception("item_matches_error id=%s err=%s", item_id, e)
        raise HTTPException(500, detail="matching_error")
    message = None if matches else "No matches above the similarity threshold (or item has no embedding)."
    return MatchesResponse(success=True, queryId=item_id, targetStatus=target, message=message, matches=matches)
