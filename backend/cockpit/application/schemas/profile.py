"""Pydantic DTOs for the carpenter profile and the credit store."""

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    email: str
    name: str
    business_name: str
    credits: int
    is_admin: bool
    integrations: dict[str, str]

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Schema for editing the profile — all fields optional."""

    name: str | None = Field(None, max_length=200)
    business_name: str | None = Field(None, max_length=200)
    integrations: dict[str, str] | None = Field(
        None, examples=[{"corte_cloud_token": "abc123", "whatsapp_number": "+5511999990000"}],
    )


class CreditPackResponse(BaseModel):
    id: str
    name: str
    credits: int
    price: str
    bonus: str

    model_config = {"from_attributes": True}


class PurchaseRequest(BaseModel):
    pack_id: str = Field(..., examples=["start", "pro", "expert"])


class PurchaseResponse(BaseModel):
    pack_id: str
    credits: int
