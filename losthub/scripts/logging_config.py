# logging_config.py
import logging
import logging.config
import logging.handlers
from pathlib import Path
import contextvars

# Per-request identifier, carried through a ContextVar
_request_id_ctx = contextvars.ContextVar("request_id", default="-")

class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id_ctx.get("-")
        return True

def set_request_id(req_id: str):
    _request_id_ctx.set(req_id)

def get_logger(name: str = __name__) -> logging.Logger:
    return logging.getLogger(name)

LOG_DIR = Path("logs")
LOG_DIR.mkdir(parents=True, exist_ok=True)


def _rotating_file(filename: str) -> dict:
    return {
        "class": "logging.handlers.TimedRotatingFileHandler",
        "level": "INFO",
        "formatter": "default",
        "filters": ["request_id"],
        "filename": str(LOG_DIR / filename),
        "when": "midnight",
        "interval": 1,
        "backupCount": 30,
        "encoding": "utf-8",
    }


def build_dict_config(json_fmt: bool = False) -> dict:
    fmt = (
        '{"ts":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s",'
        '"request_id":"%(request_id)s","msg":"%(message)s"}'
        if json_fmt
        else '%(asctime)s | %(levelname)s | %(name)s | rid=%(request_id)s | %(message)s'
    )

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "default": {
                "format": fmt,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": "default",
                "filters": ["request_id"],
            },
            "file_app": _rotating_file("app.log"),
            "file_matching": _rotating_file("matching.log"),
            "file_notifications": _rotating_file("notifications.log"),
        },
        "loggers": {
            "": {
                "level": "INFO",
                "handlers": ["console", "file_app"],
            },
            # embedding + candidate scoring
            "matching": {
                "level": "INFO",
                "handlers": ["console", "file_matching"],
                "propagate": False,
            },
            "notifier": {
                "level": "INFO",
                "handlers": ["console", "file_notifications"],
                "propagate": False,
            },
            "uvicorn": {"level": "INFO"},
            "uvicorn.error": {"level": "INFO"},
            "uvicorn.access": {"level": "INFO"},
        },
    }

def setup_logging(json_fmt: bool = False):
    logging.config.dictConfig(build_dict_config(json_fmt=json_fmt))

# ===== matching helpers =====
def log_embedding_generation(item_id: str | None, success: bool,
                             embedding_dim: int | None = None, error: str | None = None,
                             logger: logging.Logger | None = None):
    logger = logger or get_logger("matching")
    if success:
        logger.info("embedding_generated item=%s dim=%s", item_id or "-", embedding_dim)
    else:
        logger.error("embedding_failed item=%s err=%s", item_id or "-", error)

def log_match_summary(item_id: str | None, target_status: str, candidates: int,
                      matches: int, top_score: float | None = None,
                      logger: logging.Logger | None = None):
    logger = logger or get_logger("matching")
    logger.info("match_scan item=%s target=%s candidates=%d matches=%d top=%s",
                item_id or "-", target_status, candidates, matches,
                "-" if top_score is None else f"{top_score:.4f}")
