"""Item lifecycle: create, approve (with match scan + notification), delete, re-embed.

Each step that touches an external system (Vertex, Firestore, Storage, SMTP) is
awaited through the threadpool in order, so embedding finishes before matching
and matching finishes before any email goes out.

Matching runs only at admin-approval time. Creation stores the embedding but
never scans or notifies.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from losthub.models.items import Item, ItemStatus
from losthub.scripts.logging_config import get_logger
from . import embeddings, item_store, matching, media_store, notifier, user_store

logger = get_logger("item_workflow")

REQUIRED_FIELDS = ("name", "description", "status", "category", "lastSeenLocation")
DEFAULT_COLLECT_LOCATION = "Pending location details"


def _embedding_text(item: Dict) -> str:
    return (item.get("description") or item.get("name") or "").strip()


def _parse_status(raw) -> ItemStatus:
    try:
        return ItemStatus(str(raw).strip().lower())
    except ValueError:
        raise ValueError("invalid_status")


async def _load_item(item_id: str) -> Dict:
    item = await run_in_threadpool(item_store.get_item, item_id)
    if item is None:
        raise LookupError("item_not_found")
    return item


# ------------------------------------------------------------------------------
# Create
# ------------------------------------------------------------------------------
async def create_item(fields: Dict, poster_uid: str, image: Optional[Tuple[bytes, str, str]] = None) -> str:
    """Persist a new pending item and return its id.

    `image` is (bytes, filename, content_type). Embedding failures are absorbed:
    the item is stored with an empty `textEmbedding`.
    """
    missing = [f for f in REQUIRED_FIELDS if not (fields.get(f) or "").strip()]
    if missing:
        raise ValueError("missing_fields:" + ",".join(missing))
    status = _parse_status(fields["status"])

    image_url = None
    if image is not None:
        data, filename, content_type = image
        image_url = await run_in_threadpool(media_store.upload_item_image, data, filename, content_type)

    vector = await run_in_threadpool(embeddings.generate_embedding, _embedding_text(fields))
    if not vector:
        logger.warning("item_create_without_embedding poster=%s name=%r", poster_uid, fields.get("name"))

    item = Item(
        name=fields["name"].strip(),
        description=fields["description"].strip(),
        category=fields["category"].strip(),
        status=status,
        lastSeenLocation=fields["lastSeenLocation"].strip(),
        itemCollectLocation=(
            (fields.get("itemCollectLocation") or "").strip() or DEFAULT_COLLECT_LOCATION
            if status is ItemStatus.FOUND else None
        ),
        imageUrl=image_url,
        textEmbedding=vector or [],
        posterUid=poster_uid,
    )
    doc = item.model_dump(mode="json", exclude={"id", "dateReported"})
    item_id = await run_in_threadpool(item_store.create_item, doc)
    logger.info("item_created id=%s status=%s embedded=%s", item_id, status.value, bool(vector))
    return item_id


# ------------------------------------------------------------------------------
# Approve
# ------------------------------------------------------------------------------
async def _notify_lost_poster(lost_item: Dict, found_matches: List[Dict]) -> int:
    email = await run_in_threadpool(user_store.resolve_user_email, lost_item.get("posterUid"))
    sent = await run_in_threadpool(notifier.send_match_notification, email, lost_item, found_matches)
    return int(sent)


async def _notify_matched_lost_posters(found_item: Dict, lost_matches: List[Dict]) -> int:
    # one email per matched lost item, each naming only the approved found item
    sent = 0
    for lost_item in lost_matches:
        email = await run_in_threadpool(user_store.resolve_user_email, lost_item.get("posterUid"))
        found_as_match = {**found_item, "score": lost_item.get("score")}
        ok = await run_in_threadpool(notifier.send_match_notification, email, lost_item, [found_as_match])
        sent += int(ok)
    return sent


async def approve_item(item_id: str) -> Dict:
    """Approve an item, then scan the opposite status and notify affected posters.

    Returns {"success": True, "isMatchFound": bool, "matchCount": int}.
    The scan runs once, on the Pending -> Approved transition; approving an
    already approved item is a no-op. Repository failures propagate;
    notification failures do not.
    """
    item = await _load_item(item_id)
    status = _parse_status(item.get("status"))

    if item.get("isApproved") is True:
        logger.info("approve_skip_already_approved id=%s", item_id)
        return {"success": True, "isMatchFound": False, "matchCount": 0}

    await run_in_threadpool(item_store.mark_approved, item_id)
    item["isApproved"] = True
    logger.info("item_approved id=%s status=%s", item_id, item.get("status"))

    vector = item.get("textEmbedding") or []
    if not vector:
        logger.info("approve_skip_matching_no_vector id=%s", item_id)
        return {"success": True, "isMatchFound": False, "matchCount": 0}

    matches = await run_in_threadpool(
        matching.get_potential_matches, vector, status.opposite.value, None, None, item_id
    )
    if not matches:
        return {"success": True, "isMatchFound": False, "matchCount": 0}

    if status is ItemStatus.LOST:
        sent = await _notify_lost_poster(item, matches)
    else:
        sent = await _notify_matched_lost_posters(item, matches)
    logger.info("approve_notifications id=%s matches=%d emails_sent=%d", item_id, len(matches), sent)

    return {"success": True, "isMatchFound": True, "matchCount": len(matches)}


# ------------------------------------------------------------------------------
# Read matches
# ------------------------------------------------------------------------------
async def find_item_matches(item_id: str) -> Tuple[ItemStatus, List[Dict]]:
    """(target status, ranked matches) for one stored item. No notifications."""
    item = await _load_item(item_id)
    target = _parse_status(item.get("status")).opposite
    vector = item.get("textEmbedding") or []
    if not vector:
        return target, []
    matches = await run_in_threadpool(
        matching.get_potential_matches, vector, target.value, None, None, item_id
    )
    return target, matches


# ------------------------------------------------------------------------------
# Delete
# ------------------------------------------------------------------------------
async def delete_item(item_id: str) -> bool:
    """Hard-delete the record; returns whether the image blob was removed too."""
    item = await _load_item(item_id)
    await run_in_threadpool(item_store.delete_item, item_id)
    return await run_in_threadpool(media_store.delete_item_image, item.get("imageUrl"))


# ------------------------------------------------------------------------------
# Re-embed (maintenance)
# ------------------------------------------------------------------------------
async def reembed_item(item_id: str) -> Optional[List[float]]:
    """Recompute and store one item's vector. None when embedding failed."""
    item = await _load_item(item_id)
    vector = await run_in_threadpool(embeddings.generate_embedding, _embedding_text(item), item_id)
    if not vector:
        return None
    await run_in_threadpool(item_store.set_embedding, item_id, vector)
    return vector


async def reembed_missing(limit: Optional[int] = None) -> Dict[str, int]:
    """Re-embed every item whose stored vector is empty."""
    items = await run_in_threadpool(item_store.list_items_without_embedding, limit)
    done = failed = 0
    for item in items:
        vector = await run_in_threadpool(embeddings.generate_embedding, _embedding_text(item), item["id"])
        if not vector:
            failed += 1
            continue
        await run_in_threadpool(item_store.set_embedding, item["id"], vector)
        done += 1
    logger.info("reembed_done checked=%d reembedded=%d failed=%d", len(items), done, failed)
    return {"checked": len(items), "reembedded": done, "failed": failed}
