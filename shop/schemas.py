from datetime import datetime
from typing import Any, Optional

from pydantic import AliasGenerator, BaseModel
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

# Request bodies arrive with camelCase keys; Python fields stay snake_case.
_wire = ConfigDict(alias_generator=to_camel, populate_by_name=True)
# Records are read from ORM objects by attribute name and dumped camelCase.
_record = ConfigDict(from_attributes=True, alias_generator=AliasGenerator(serialization_alias=to_camel))


class RegisterIn(BaseModel):
    model_config = _wire

    email: str
    username: str
    password: str
    first_name: str = ""
    last_name: str = ""


class LoginIn(BaseModel):
    email: str
    password: str


class ResetPasswordIn(BaseModel):
    email: str


class UserUpdate(BaseModel):
    model_config = _wire

    email: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    is_admin: Optional[bool] = None


class ChangePasswordIn(BaseModel):
    model_config = _wire

    new_password: str
    current_password: Optional[str] = None


class ProductCreate(BaseModel):
    model_config = _wire

    name: str
    description: Optional[str] = None
    # no range check: negative values reach the store unchanged
    price: float
    stock: int
    category: Optional[str] = None
    image_url: Optional[str] = None


class ProductUpdate(BaseModel):
    model_config = _wire

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    stock: Optional[int] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class OrderItemIn(BaseModel):
    model_config = _wire

    product_id: int
    quantity: int
    price: float


class OrderCreate(BaseModel):
    model_config = _wire

    items: list[OrderItemIn] = []
    shipping_address: str
    total_amount: float
    user_id: Optional[int] = None
    notes: Optional[str] = None


class OrderStatusIn(BaseModel):
    status: str
    reason: Optional[str] = None


class ReasonIn(BaseModel):
    reason: Optional[str] = None


class WebhookTestIn(BaseModel):
    action: str
    target: Optional[str] = None
    data: Optional[Any] = None
    secret: Optional[str] = None


class WebhookReplayIn(BaseModel):
    model_config = _wire

    webhook_id: Optional[str] = None
    modifications: Optional[dict] = None


class FromUrlIn(BaseModel):
    url: str
    filename: Optional[str] = None


class DebugIn(BaseModel):
    command: str
    args: Optional[list] = None


class RawQueryIn(BaseModel):
    query: str


class UserRecord(BaseModel):
    model_config = _record

    id: int
    email: str
    username: str
    password: str
    first_name: str
    last_name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    is_admin: bool
    created_at: datetime
    updated_at: datetime


class ProductRecord(BaseModel):
    model_config = _record

    id: int
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    category: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


def dump(record: BaseModel) -> dict:
    return record.model_dump(by_alias=True)


def changes(body: BaseModel) -> dict:
    """Echo only what the caller actually sent, in wire names."""
    return body.model_dump(by_alias=True, exclude_unset=True)
