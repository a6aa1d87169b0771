"""
Process-wide logging setup.

Records are tagged with a domain so chat, quiz and retrieval events can be filtered apart;
structured events are logged as a JSON string in the message. Credentials that reach a
message (database URLs, bearer tokens) are masked before any handler writes them.
"""
import logging
import re
import sys

DOMAIN_CHAT = "chat"
DOMAIN_QUIZ = "quiz"
DOMAIN_RAG = "rag"
DOMAIN_ADAPTATION = "adaptation"
DOMAIN_INGESTION = "ingestion"
DOMAIN_MAINTENANCE = "maintenance"

LOG_FORMAT = "%(asctime)s | %(levelname)s | [%(domain)s] | %(name)s | %(message)s"

# Paths polled by health checks and dashboards.
QUIET_PATHS = ("/health", "/metrics/app")

_MASKS = (
    (re.compile(r"(?i)(postgres(?:ql)?(?:\+asyncpg)?://[^:/@\s]+:)[^@\s]+(@)"), r"\1***\2"),
    (re.compile(r"(?i)(authorization\s*[=:]\s*bearer\s+)\S+"), r"\1***"),
    (re.compile(r"(?i)\b((?:api[_-]?key|password)\s*[=:]\s*)[^\s,;]+"), r"\1***"),
)


def get_domain_logger(name: str, domain: str) -> logging.LoggerAdapter[logging.Logger]:
    return logging.LoggerAdapter(logging.getLogger(name), {"domain": domain})


def mask_credentials(message: str) -> str:
    text = str(message or "")
    for pattern, replacement in _MASKS:
        text = pattern.sub(replacement, text)
    return text


class TutorRecordFilter(logging.Filter):
    """Defaults the domain tag and masks credentials in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "domain"):
            record.domain = "app"  # type: ignore[attr-defined]
        record.msg = mask_credentials(record.getMessage())
        record.args = ()
        return True


class QuietPathFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(f"GET {path} " in message for path in QUIET_PATHS)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(TutorRecordFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    access = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, QuietPathFilter) for f in access.filters):
        access.addFilter(QuietPathFilter())
