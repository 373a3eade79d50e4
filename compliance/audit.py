import json
import logging
from datetime import datetime, timezone

logger = logging.getLogger("doctorhelp.audit")

def audit_event(event_type: str, payload: dict):
    """
    Emit one AUDIT_EVENT line through logging.
    Payloads carry request metadata only, never case text.
    """
    rec = {"ts": datetime.now(timezone.utc).isoformat(), "event": event_type, "payload": payload}
    logger.info("AUDIT_EVENT " + json.dumps(rec, default=str))
