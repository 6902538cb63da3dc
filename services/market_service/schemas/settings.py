"""Pydantic schemas for company branding settings."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class CompanyNameUpdate(BaseModel):
    company_name: str = Field(
        "",
        max_length=255,
        validation_alias=AliasChoices("company_name", "companyName"),
    )


class CompanyNameResponse(BaseModel):
    company_name: str


class CompanyNameUpdated(CompanyNameResponse):
    message: str


class LogoUploadResponse(BaseModel):
    message: str
    filename: str
    original_name: Optional[str] = None
    size: int
