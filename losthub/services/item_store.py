from __future__ import annotations
from typing import Dict, List, Optional

from firebase_admin import firestore
from losthub.scripts.logging_config import get_logger

logger = get_logger("item_store")

ITEMS_COLLECTION = "items"

_db = None

def get_db():
    global _db
    if _db is None:
        _db = firestore.client()
    return _db

# Firestore layout
# items/{item_id}  { name, description, category, status, lastSeenLocation, itemCollectLocation,
#                    imageUrl, textEmbedding, isApproved, isResolved, posterUid, dateReported }
# users/{uid}      { email, displayName, isAdmin }


def _collection():
    return get_db().collection(ITEMS_COLLECTION)


def _with_id(snap) -> Dict:
    data = snap.to_dict() or {}
    data["id"] = snap.id
    return data


def create_item(doc: Dict) -> str:
    """Insert a new item document; dateReported is server-assigned."""
    payload = dict(doc)
    payload.pop("id", None)
    payload["dateReported"] = firestore.SERVER_TIMESTAMP
    _, ref = _collection().add(payload)
    logger.info("firestore.write op=add doc=%s/%s status=%s dim=%d",
                ITEMS_COLLECTION, ref.id, payload.get("status"), len(payload.get("textEmbedding") or []))
    return ref.id


def get_item(item_id: str) -> Optional[Dict]:
    snap = _collection().document(item_id).get()
    if not snap.exists:
        return None
    return _with_id(snap)


def update_item(item_id: str, data: Dict) -> None:
    _collection().document(item_id).update(data)
    logger.info("firestore.write op=update doc=%s/%s fields=%s", ITEMS_COLLECTION, item_id, sorted(data))


def mark_approved(item_id: str) -> None:
    update_item(item_id, {"isApproved": True})


def set_embedding(item_id: str, vector: List[float]) -> None:
    update_item(item_id, {"textEmbedding": list(vector)})


def delete_item(item_id: str) -> None:
    _collection().document(item_id).delete()
    logger.info("firestore.write op=delete doc=%s/%s", ITEMS_COLLECTION, item_id)


def fetch_candidates(target_status: str) -> List[Dict]:
    """All approved, unresolved items of `target_status`, unpaginated."""
    query = (
        _collection()
        .where("status", "==", target_status)
        .where("isApproved", "==", True)
        .where("isResolved", "==", False)
    )
    items = [_with_id(doc) for doc in query.stream()]
    logger.debug("firestore.read candidates status=%s count=%d", target_status, len(items))
    return items


def list_items_without_embedding(limit: Optional[int] = None) -> List[Dict]:
    query = _collection().where("textEmbedding", "==", [])
    if limit:
        query = query.limit(limit)
    return [_with_id(doc) for doc in query.stream()]
