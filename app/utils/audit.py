import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Security events only; operational logging stays on module loggers
_logger = logging.getLogger("audit")


def email_hash(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    h = hashlib.sha256(email.strip().lower().encode()).hexdigest()
    return h[:12]


def audit(event: str, *, email: Optional[str] = None, level: int = logging.WARNING, **fields: Any) -> None:
    """Emit a security event as a single JSON line on the ``audit`` logger.

    Never pass secrets or signatures. Email is hashed to limit PII exposure.
    None-valued fields are dropped.
    """
    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
    }
    if email:
        payload["email_hash"] = email_hash(email)
    payload.update({k: v for k, v in fields.items() if v is not None})
    try:
        _logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
    except (TypeError, ValueError):
        _logger.log(level, f"AUDIT {event} email_hash={payload.get('email_hash')} fields={fields}")
