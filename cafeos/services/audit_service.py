from datetime import datetime, timezone
from typing import Any

from cafeos.core.id_utils import generate_prefixed_id
from cafeos.schemas.audit import AuditEvent
from cafeos.services.document_store import DocumentStore

AUDIT_COLLECTION = "audit_logs"


def log_audit_event(
    store: DocumentStore,
    *,
    action: str,
    target_type: str,
    target_id: str | None = None,
    actor_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    event = AuditEvent(
        audit_id=generate_prefixed_id("aud"),
        action=action,
        target_type=target_type,
        target_id=target_id,
        actor_id=actor_id,
        metadata=metadata,
        created_at=datetime.now(timezone.utc),
    )
    store.write_one(AUDIT_COLLECTION, event.audit_id, event.to_record())
    return event


def list_audit_events(
    store: DocumentStore,
    *,
    action: str | None = None,
    target_type: str | None = None,
    actor_id: str | None = None,
) -> list[AuditEvent]:
    events = [AuditEvent.from_record(data, key) for key, data in store.read_all(AUDIT_COLLECTION).items()]
    if action:
        events = [event for event in events if event.action == action]
    if target_type:
        events = [event for event in events if event.target_type == target_type]
    if actor_id:
        events = [event for event in events if event.actor_id == actor_id]
    return sorted(events, key=lambda event: event.created_at, reverse=True)
