from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CompanyBase(BaseModel):
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    identifier: str | None = Field(
        None,
        min_length=2,
        max_length=100,
        pattern=r"^[a-z0-9][a-z0-9-]*$",
        description="Tenant slug (lowercase letters, digits, hyphens)",
    )
    logo: str | None = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if v is not None and "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class CompanyCreate(CompanyBase):
    name: str = Field(..., min_length=1, max_length=255)


class CompanyUpdate(CompanyBase):
    """Only the fields present in the request body are changed"""

    name: str | None = Field(None, min_length=1, max_length=255)


class CompanyResponse(CompanyBase):
    """Company with decrypted contact fields"""

    id: int
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProvisioningResponse(BaseModel):
    company: CompanyResponse
    company_user_id: int
    admin_role_id: int
    user_role_id: int
    permission_ids: list[int]

    model_config = ConfigDict(from_attributes=True)


class CompanyDeletionResponse(BaseModel):
    company_id: int
    deleted: dict[str, int]


class CompanyUserRegister(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    phone: str | None = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class CompanyUserAdd(BaseModel):
    user_id: int


class CompanyMemberResponse(BaseModel):
    company_user_id: int
    company_id: int
    user_id: int
    email: str | None
    phone: str | None
    is_main: bool

    model_config = ConfigDict(from_attributes=True)
