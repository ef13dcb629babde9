from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cafeos.schemas.common import StoredModel


class InventoryItem(StoredModel):
    id_field: ClassVar[str] = "inventoryID"

    inventory_id: str | None = Field(default=None, alias="inventoryID")
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    supplier_id: str = Field(alias="supplierID")
    category_id: str | None = Field(default=None, alias="categoryID")
    quantity: float = Field(default=0, ge=0)
    unit: str | None = None
    base_unit: str | None = Field(default=None, alias="baseUnit")
    pieces_per_unit: float | None = Field(default=None, gt=0, alias="piecesPerUnit")
    reorder_point: float | None = Field(default=None, ge=0, alias="reorderPoint")
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("unit", "base_unit")
    @classmethod
    def _strip_optional(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "inventoryID": "inv_coffee-cups",
                "name": "Paper Cups",
                "supplierID": "s_packaging",
                "quantity": 2,
                "unit": "bags",
                "baseUnit": "pieces",
                "piecesPerUnit": 100,
                "reorderPoint": 1,
            }
        }
    )


class StockAdjustIn(BaseModel):
    delta: float = Field(..., description="Positive adds stock, negative removes stock. Cannot be zero.")

    @field_validator("delta")
    @classmethod
    def validate_non_zero_delta(cls, value: float) -> float:
        if value == 0:
            raise ValueError("delta cannot be zero")
        return value

    model_config = ConfigDict(json_schema_extra={"example": {"delta": -1.5}})


class StockSetIn(BaseModel):
    quantity: float
    reason: str | None = Field(default=None, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={"example": {"quantity": 12, "reason": "weekly count"}}
    )


class StockLevelOut(BaseModel):
    inventory_id: str
    quantity: float
    unit: str
    display: str
    base_quantity: float


class LowStockItemOut(BaseModel):
    inventory_id: str
    name: str
    quantity: float
    unit: str
    reorder_point: float
