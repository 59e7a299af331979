import json

import firebase_admin
from firebase_admin import credentials

from config import settings
from losthub.scripts.logging_config import get_logger

logger = get_logger("firebase")


def init_firebase() -> bool:
    """Initialise the default Firebase app once. Returns False when no credentials exist."""
    if firebase_admin._apps:
        return True

    cred_obj = None
    bucket_from_json = None
    try:
        if settings.FIREBASE_CREDENTIALS_JSON_STRING:
            cred_info = json.loads(settings.FIREBASE_CREDENTIALS_JSON_STRING)
            bucket_from_json = cred_info.get('storage_bucket') or cred_info.get('storageBucket')
            cred_obj = credentials.Certificate(cred_info)
            logger.info("Firebase credentials loaded from FIREBASE_CREDENTIALS_JSON_STRING.")
        elif settings.GOOGLE_APPLICATION_CREDENTIALS:
            try:
                with open(settings.GOOGLE_APPLICATION_CREDENTIALS, 'r', encoding='utf-8') as f:
                    ci = json.load(f)
                    bucket_from_json = ci.get('storage_bucket') or ci.get('storageBucket')
                cred_obj = credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
                logger.info("Firebase credentials loaded from GOOGLE_APPLICATION_CREDENTIALS file.")
            except (OSError, ValueError) as e:
                logger.warning("Failed to read GOOGLE_APPLICATION_CREDENTIALS file: %s", e)

        if not cred_obj:
            logger.warning("Firebase credentials not found. Firebase features will be disabled.")
            return False

        init_options: dict = {}
        chosen_bucket = settings.FIREBASE_STORAGE_BUCKET or bucket_from_json
        if chosen_bucket:
            init_options['storageBucket'] = chosen_bucket
            logger.info("Firebase init with storageBucket=%s", chosen_bucket)
        else:
            logger.info("Firebase init without explicit storageBucket (project-id fallback may apply).")

        firebase_admin.initialize_app(cred_obj, init_options or None)
        logger.info("Firebase initialized successfully.")
        return True
    except Exception as e:
        logger.exception("Firebase initialization failed: %s", e)
        return False
