from typing import ClassVar, Optional

from pydantic import Field, field_validator

from cafeos.schemas.common import StoredModel


class Supplier(StoredModel):
    id_field: ClassVar[str] = "supplierID"

    supplier_id: Optional[str] = Field(default=None, alias="supplierID")
    name: str
    contact_info: Optional[str] = Field(default=None, alias="contactInfo")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name is required")
        return cleaned
