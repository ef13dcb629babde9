from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class StoredModel(BaseModel):
    """
    A record kept in the document store. Field aliases are the stored
    (camelCase) names; absent optional fields are never written.
    """

    id_field: ClassVar[str] = "id"

    model_config = ConfigDict(populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_record(cls, data: dict[str, Any], key: str | None = None):
        payload = dict(data)
        if key is not None and not payload.get(cls.id_field):
            payload[cls.id_field] = key
        return cls.model_validate(payload)


class PaginationMeta(BaseModel):
    total: int
    limit: int
    offset: int
    count: int
    has_next: bool

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total": 42,
                "limit": 10,
                "offset": 0,
                "count": 10,
                "has_next": True,
            }
        }
    )


class OkOut(BaseModel):
    ok: bool = True


class ValidationIssueOut(BaseModel):
    field: str
    message: str
    type: str | None = None


class ErrorDetailOut(BaseModel):
    code: str
    message: str
    request_id: str
    path: str
    details: list[ValidationIssueOut] | None = None


class ErrorOut(BaseModel):
    error: ErrorDetailOut

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "validation_error",
                    "message": "Some of the information provided is invalid. Please review it and try again.",
                    "request_id": "8d8f2b00-6c79-4a45-8ff4-b0a5f2bc4bc2",
                    "path": "/orders",
                    "details": None,
                }
            }
        }
    )
