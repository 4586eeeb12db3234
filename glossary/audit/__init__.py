from flask import has_request_context, request

from ..models import AuditLog, db


def log_event(action, target_type=None, target_id=None, detail=None):
    """Record an audit event in the current transaction.

    The entry is flushed, not committed: it is persisted or rolled back
    together with the change it describes.
    """
    entry = AuditLog(
        action=action,
        target_type=target_type,
        target_id=target_id,
        detail=detail,
        ip_address=request.remote_addr if has_request_context() else None,
    )
    db.session.add(entry)
    db.session.flush()
    return entry
