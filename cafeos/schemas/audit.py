from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from cafeos.schemas.common import PaginationMeta, StoredModel


class AuditEvent(StoredModel):
    id_field: ClassVar[str] = "auditID"

    audit_id: str = Field(alias="auditID")
    action: str
    target_type: str = Field(alias="targetType")
    target_id: str | None = Field(default=None, alias="targetID")
    actor_id: str | None = Field(default=None, alias="actorID")
    metadata: dict[str, Any] | None = None
    created_at: datetime = Field(alias="createdAt")


class AuditEventListOut(BaseModel):
    items: list[AuditEvent]
    pagination: PaginationMeta
