"""
Request schemas.

Each model validates one JSON body; services receive the parsed model.
"""

import re
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator

EMAIL_REGEX = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"
SLUG_REGEX = r"^[a-z0-9-]+$"
PASSWORD_REGEX = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)"

MAX_FORM_FIELDS = 20


def _normalize_email(value):
    value = value.strip().lower()
    if not re.match(EMAIL_REGEX, value):
        raise ValueError("Invalid email address")
    return value


def _check_password(value):
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if len(value) > 100:
        raise ValueError("Password must be less than 100 characters")
    if not re.match(PASSWORD_REGEX, value):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return value


Email = Annotated[str, AfterValidator(_normalize_email)]
Password = Annotated[str, AfterValidator(_check_password)]


# ---------- Catalog ----------

class CategoryIn(BaseModel):
    name: str = Field(..., min_length=2)
    slug: str = Field(..., min_length=2, pattern=SLUG_REGEX)
    is_active: bool = True


class UserFormField(BaseModel):
    type: Literal["text", "select"]
    name: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    placeholder: Optional[str] = None
    required: bool = True
    options: Optional[List[str]] = None


class VariantIn(BaseModel):
    name: str = Field(..., min_length=1)
    price: int = Field(..., ge=1, strict=True)
    is_active: bool = True
    sort_order: Optional[int] = None


class ProductIn(BaseModel):
    name: str = Field(..., min_length=2)
    slug: str = Field(..., min_length=2, pattern=SLUG_REGEX)
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: str = Field(..., min_length=1)
    is_active: bool = True
    user_form_fields: Optional[List[UserFormField]] = None
    variants: List[VariantIn] = Field(..., min_length=1)

    @field_validator("image")
    @classmethod
    def image_is_url(cls, v):
        if v and not re.match(r"^https?://", v):
            raise ValueError("Must be a valid URL")
        return v or None


# ---------- Orders ----------

class CreateOrderIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    variant_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    user_form_data: Optional[Dict[str, str]] = None
    payment_provider: Optional[str] = None

    @field_validator("email")
    @classmethod
    def email_format(cls, v):
        return _normalize_email(v) if v else v

    @field_validator("user_form_data")
    @classmethod
    def form_data_limits(cls, v):
        if v is None:
            return v
        if len(v) > MAX_FORM_FIELDS:
            raise ValueError("Too many form fields")
        for key, value in v.items():
            if not 1 <= len(key) <= 100:
                raise ValueError("Form field names must be 1-100 characters")
            if len(value) > 500:
                raise ValueError("Form field values must be at most 500 characters")
        return v


class OrderStatusIn(BaseModel):
    status: Literal["PENDING", "PROCESSING", "COMPLETED", "FAILED", "CANCELLED"]


class PaymentStatusIn(BaseModel):
    payment_status: Literal["PENDING", "PAID", "FAILED", "REFUNDED"]


class OrderNotesIn(BaseModel):
    notes: str = ""


# ---------- Auth ----------

class RegisterIn(BaseModel):
    email: Email
    password: Password
    name: Optional[str] = Field(None, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class LoginIn(BaseModel):
    email: Email
    password: str = Field(..., min_length=1)


class EmailIn(BaseModel):
    email: Email


class VerifyEmailIn(BaseModel):
    email: Email
    otp: str = Field(..., pattern=r"^\d{6}$")


class ResetPasswordIn(BaseModel):
    token: str = Field(..., min_length=1)
    password: Password


class UpdateProfileIn(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_length(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        if len(v) > 100:
            raise ValueError("Name must be less than 100 characters")
        return v

    @field_validator("image")
    @classmethod
    def image_is_url(cls, v):
        if v is not None and not re.match(r"^https?://", v):
            raise ValueError("Image must be a valid URL")
        return v


# ---------- Admin ----------

class SetRoleIn(BaseModel):
    role: Literal["user", "admin"]


class SetAdminIn(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="after")
    def one_of(self):
        if not self.user_id and not self.email:
            raise ValueError("user_id or email is required")
        return self


class BanIn(BaseModel):
    ban_reason: Optional[str] = None
    ban_expires_in: Optional[int] = Field(None, ge=1)  # seconds


class EmailVerifiedIn(BaseModel):
    email_verified: bool
