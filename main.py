# main.py
import uuid
from time import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from losthub.scripts.logging_config import setup_logging, get_logger, set_request_id
from losthub.services.firebase_app import init_firebase

# 1) logging first
# json_fmt=True for JSON lines in production
setup_logging(json_fmt=False)
logger = get_logger(__name__)

# 2) Firebase
init_firebase()

# 3) FastAPI app
app = FastAPI(title="LostHub Lost & Found API")

# 4) request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    set_request_id(rid)

    start = time()
    path = request.url.path
    method = request.method
    query = request.url.query
    client_ip = getattr(request.client, 'host', '-') if request.client else '-'
    ua = request.headers.get('user-agent', '')[:120]

    if query:
        logger.info("REQ start %s %s?%s ip=%s ua=%r", method, path, query, client_ip, ua)
    else:
        logger.info("REQ start %s %s ip=%s ua=%r", method, path, client_ip, ua)

    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        duration = (time() - start) * 1000
        status = getattr(response, 'status_code', 'NA')
        size = response.headers.get('content-length', '-') if response is not None else '-'
        logger.info("REQ end %s %s status=%s %.1fms size=%s", method, path, status, duration, size)

# 5) CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.info("CORS middleware configured for %s", settings.ALLOWED_ORIGINS)

# 6) routers
from losthub.api import items, admin

app.include_router(items.router)
app.include_router(admin.router)

# 7) endpoints
@app.get("/")
def root():
    return {"message": "Hello from the Lost & Found Backend!", "routes": [
        "/items",
        "/items/{item_id}/matches",
        "/admin/items/{item_id}/approve",
        "/admin/items/{item_id}",
        "/admin/items/{item_id}/reembed",
        "/admin/reembed",
    ]}
