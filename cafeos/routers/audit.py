from fastapi import APIRouter, Depends, Query

from cafeos.core.api_docs import error_responses
from cafeos.core.deps import Services, get_services
from cafeos.core.permissions import require_roles
from cafeos.core.security import Identity
from cafeos.schemas.audit import AuditEventListOut
from cafeos.schemas.common import PaginationMeta
from cafeos.services.audit_service import list_audit_events

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get(
    "",
    response_model=AuditEventListOut,
    response_model_exclude_none=True,
    summary="List audit events",
    responses={**error_responses(401, 403, 422, 500)},
)
def list_audit_logs(
    actor_id: str | None = Query(default=None, alias="actorID"),
    action: str | None = Query(default=None),
    target_type: str | None = Query(default=None, alias="targetType"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    services: Services = Depends(get_services),
    _identity: Identity = Depends(require_roles("admin")),
):
    events = list_audit_events(
        services.store,
        action=action,
        target_type=target_type,
        actor_id=actor_id,
    )
    total = len(events)
    items = events[offset : offset + limit]
    count = len(items)
    return AuditEventListOut(
        items=items,
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            count=count,
            has_next=(offset + count) < total,
        ),
    )
