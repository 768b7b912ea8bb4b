"""Pydantic schemas for the membership signup API."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class SubscribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=40)
    body_goals: Optional[str] = Field(default=None, alias="bodyGoals", max_length=2000)
    referral_name: Optional[str] = Field(default=None, alias="referralName", max_length=200)

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("name", "phone", "body_goals", "referral_name")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None

    @property
    def missing_required(self) -> bool:
        return not (self.name and self.email and self.phone)


class SubscribeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    redirect_url: str = Field(alias="redirectUrl")
    reference: str


class ContactRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_type: str = Field(default="Contact Form", alias="formType", max_length=80)
    fields: Dict[str, str] = Field(default_factory=dict)


class ContactResponse(BaseModel):
    received: bool = True


class ErrorResponse(BaseModel):
    error: str
