from __future__ import annotations
from typing import Dict, Optional

from firebase_admin import auth
from . import item_store  # reuse Firestore client
from losthub.scripts.logging_config import get_logger

logger = get_logger("notifier")

USERS_COLLECTION = "users"


def get_user(uid: str) -> Optional[Dict]:
    snap = item_store.get_db().collection(USERS_COLLECTION).document(uid).get()
    if not snap.exists:
        return None
    data = snap.to_dict() or {}
    data["uid"] = uid
    return data


def resolve_user_email(uid: Optional[str]) -> Optional[str]:
    """uid -> email, from the users collection first, then Firebase Auth.

    Lookup failures are logged and reported as None so that a missing
    recipient never fails the caller.
    """
    if not uid:
        logger.info("user_email_skip_no_uid")
        return None
    try:
        profile = get_user(uid)
        if profile and profile.get("email"):
            return profile["email"]
    except Exception as e:
        logger.warning("user_profile_lookup_failed user=%s err=%s", uid, e)
    try:
        rec = auth.get_user(uid)
        if not rec.email:
            logger.warning("user_email_missing user=%s", uid)
        return rec.email
    except Exception as e:
        logger.warning("user_email_lookup_failed user=%s err=%s", uid, e)
        return None
