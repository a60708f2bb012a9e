"""
Database Schemas for the web shop

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name:
- User -> "user"
- Product -> "product"
- Order -> "order"

Field constraints live here; controllers only call `model_validate` and turn
a `ValidationError` into a 400 response.
"""
from typing import Annotated, Any, Dict, List, Literal, Optional

from bson import ObjectId
from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
)
from pydantic.networks import validate_email


def _normalize_role(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Text = Annotated[str, StringConstraints(strip_whitespace=True)]
ImageUrl = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True)]
Role = Annotated[Literal["admin", "customer"], BeforeValidator(_normalize_role)]


class User(BaseModel):
    """Registration payload. `password` is plaintext and never stored."""
    name: Name
    email: EmailStr
    password: str = Field(..., min_length=10)
    role: Role = "customer"


class RoleUpdate(BaseModel):
    role: Role


class Product(BaseModel):
    name: Name
    description: Optional[Text] = None
    price: float = Field(..., ge=0, allow_inf_nan=False)
    image: Optional[ImageUrl] = None


class ProductSnapshot(BaseModel):
    """Copy of a product taken when the order is placed."""
    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    name: Name
    description: Optional[Text] = None
    price: float = Field(..., ge=0, allow_inf_nan=False)

    @field_validator("id")
    @classmethod
    def valid_object_id(cls, v):
        if not ObjectId.is_valid(v):
            raise ValueError("Invalid product id")
        return v


class OrderItem(BaseModel):
    product: ProductSnapshot
    quantity: int = Field(..., ge=1)


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: str = Field(..., alias="customerId")
    items: List[OrderItem] = Field(..., min_length=1)


def normalize_email(value: str) -> Optional[str]:
    """Email in the form `EmailStr` stores it, or None if it is not an address."""
    try:
        return validate_email(value)[1]
    except ValueError:
        return None


def validation_details(exc: ValidationError) -> List[Dict[str, Any]]:
    details = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        details.append({"field": field, "message": error["msg"]})
    return details
