from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cafeos.core.money import Money
from cafeos.schemas.common import StoredModel


class RecipeItem(BaseModel):
    inventory_id: str = Field(alias="inventoryID", min_length=1)
    quantity: float = Field(gt=0, description="Amount needed per one unit of product")
    unit: Optional[str] = None

    @field_validator("unit")
    @classmethod
    def normalize_unit(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    model_config = ConfigDict(populate_by_name=True)


class Category(StoredModel):
    id_field: ClassVar[str] = "categoryID"

    category_id: Optional[str] = Field(default=None, alias="categoryID")
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name is required")
        return cleaned


class Product(StoredModel):
    id_field: ClassVar[str] = "productID"

    product_id: Optional[str] = Field(default=None, alias="productID")
    name: str
    description: Optional[str] = None
    price: Money = Field(ge=0)
    category_id: str = Field(alias="categoryID")
    supplier_id: Optional[str] = Field(default=None, alias="supplierID")
    recipe: Optional[list[RecipeItem]] = None
    image: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name is required")
        return cleaned

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "productID": "prod_latte",
                "name": "Latte",
                "price": 4.5,
                "categoryID": "cat_coffee",
                "recipe": [
                    {"inventoryID": "inv_milk", "quantity": 200, "unit": "ml"},
                    {"inventoryID": "inv_beans", "quantity": 18, "unit": "g"},
                ],
            }
        }
    )


class ProductAvailabilityOut(BaseModel):
    product: Product
    available: bool
