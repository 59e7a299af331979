from fastapi import APIRouter, HTTPException, Query
from typing import Optional

from losthub.models.items import (
    ApprovalResponse, DeleteItemResponse, ReembedItemResponse, ReembedBatchResponse,
)
from losthub.services import item_workflow
from losthub.scripts.logging_config import get_logger

logger = get_logger("api.admin")

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/items/{item_id}/approve", response_model=ApprovalResponse)
async def approve_item(item_id: str):
    try:
        result = await item_workflow.approve_item(item_id)
    except LookupError:
        raise HTTPException(404, detail="item_not_found")
    except ValueError as e:
        raise HTTPException(422, detail=str(e))
    except Exception as e:
        logger.exception("approve_error id=%s err=%s", item_id, e)
        raise HTTPException(500, detail="approve_error")
    return ApprovalResponse(
        success=result["success"],
        message=f"Item {item_id} approved. Match check completed.",
        isMatchFound=result["isMatchFound"],
    )


@router.delete("/items/{item_id}", response_model=DeleteItemResponse)
async def delete_item(item_id: str):
    try:
        image_removed = await item_workflow.delete_item(item_id)
    except LookupError:
        raise HTTPException(404, detail="item_not_found")
    except Exception as e:
        logger.exception("delete_error id=%s err=%s", item_id, e)
        raise HTTPException(500, detail="delete_error")
    suffix = " and associated file" if image_removed else ""
    return DeleteItemResponse(success=True, message=f"Item {item_id}{suffix} successfully deleted.")


@router.post("/items/{item_id}/reembed", response_model=ReembedItemResponse)
async def reembed_item(item_id: str):
    try:
        vector = await item_workflow.reembed_item(item_id)
    except LookupError:
        raise HTTPException(404, detail="item_not_found")
    except Exception as e:
        logger.exception("reembed_error id=%s err=%s", item_id, e)
        raise HTTPException(500, detail="reembed_error")
    if not vector:
        raise HTTPException(502, detail="embedding_failed")
    return ReembedItemResponse(success=True, itemId=item_id, dimension=len(vector))


@router.post("/reembed", response_model=ReembedBatchResponse)
async def reembed_missing(limit: Optional[int] = Query(None, gt=0)):
    try:
        counts = await item_workflow.reembed_missing(limit=limit)
    except Exception as e:
        logger.exception("reembed_batch_error limit=%s err=%s", limit, e)
        raise HTTPException(500, detail="reembed_error")
    logger.info("Admin reembed requested: limit=%s result=%s", limit, counts)
    return ReembedBatchResponse(**counts)
