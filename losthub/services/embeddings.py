from __future__ import annotations

import json
import math
import numbers
import threading
from typing import List, Optional

import google.auth
import requests
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from config import settings
from losthub.scripts.logging_config import get_logger, log_embedding_generation

logger = get_logger("matching")

# ------------------------------------------------------------------------------
# Settings
# ------------------------------------------------------------------------------
SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]
ENDPOINT_TEMPLATE = (
    "https://{location}-aiplatform.googleapis.com/v1/projects/{project}"
    "/locations/{location}/publishers/google/models/{model}:predict"
)

# ------------------------------------------------------------------------------
# Internal state
# ------------------------------------------------------------------------------
_credentials = None
_project_id: Optional[str] = None
_load_lock = threading.RLock()


def _load_credentials() -> None:
    """Lazily resolve service-account (or application default) credentials."""
    global _credentials, _project_id

    if _credentials is not None:
        return

    with _load_lock:
        if _credentials is not None:
            return
        if settings.FIREBASE_CREDENTIALS_JSON_STRING:
            info = json.loads(settings.FIREBASE_CREDENTIALS_JSON_STRING)
            creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            project = info.get("project_id")
        elif settings.GOOGLE_APPLICATION_CREDENTIALS:
            creds = service_account.Credentials.from_service_account_file(
                settings.GOOGLE_APPLICATION_CREDENTIALS, scopes=SCOPES
            )
            project = creds.project_id
        else:
            creds, project = google.auth.default(scopes=SCOPES)
        _credentials = creds
        _project_id = settings.VERTEX_PROJECT_ID or project


def _access_token() -> str:
    _load_credentials()
    with _load_lock:
        if not _credentials.valid:
            _credentials.refresh(GoogleAuthRequest())
        return _credentials.token


def endpoint_url() -> str:
    _load_credentials()
    if not _project_id:
        raise RuntimeError("embedding project id unknown (set VERTEX_PROJECT_ID)")
    return ENDPOINT_TEMPLATE.format(
        location=settings.VERTEX_LOCATION,
        project=_project_id,
        model=settings.EMBEDDING_MODEL_ID,
    )


def _extract_vector(payload: dict) -> List[float]:
    values = payload["predictions"][0]["embeddings"]["values"]
    if not isinstance(values, list) or not all(
        isinstance(v, numbers.Real) and not isinstance(v, bool) for v in values
    ):
        raise ValueError("embedding values are not a list of numbers")
    if not all(math.isfinite(v) for v in values):
        raise ValueError("embedding values contain NaN or infinity")
    if len(values) != settings.EMBEDDING_DIM:
        raise ValueError(f"embedding dim {len(values)} != EMBEDDING_DIM {settings.EMBEDDING_DIM}")
    return [float(v) for v in values]


# ------------------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------------------
def generate_embedding(text: Optional[str], item_id: Optional[str] = None) -> Optional[List[float]]:
    """Embed one text with the remote model.

    Returns a list of EMBEDDING_DIM floats, or None on any failure.
    """
    if not text or not text.strip():
        logger.warning("embedding_skip_empty_text item=%s", item_id or "-")
        return None

    try:
        token = _access_token()
        resp = requests.post(
            endpoint_url(),
            json={"instances": [{"content": text}]},
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        vector = _extract_vector(resp.json())
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else "N/A"
        body = e.response.text[:300] if e.response is not None else ""
        log_embedding_generation(item_id, False, error=f"status={status} body={body!r}", logger=logger)
        return None
    except Exception as e:
        log_embedding_generation(item_id, False, error=f"{type(e).__name__}: {e}", logger=logger)
        return None

    log_embedding_generation(item_id, True, embedding_dim=len(vector), logger=logger)
    return vector