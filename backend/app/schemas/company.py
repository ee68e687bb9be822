"""Company, membership and project schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class CompanyRead(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompanyMemberCreate(BaseModel):
    email: EmailStr
    role: Literal["owner", "member"] = "member"


class CompanyMemberRead(BaseModel):
    id: int
    company_id: int
    user_id: int
    role: str

    model_config = ConfigDict(from_attributes=True)


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    project_manager_id: Optional[int] = None
    client_name: Optional[str] = Field(default=None, max_length=255)
    client_email: Optional[EmailStr] = None


class ProjectRead(BaseModel):
    id: int
    company_id: int
    name: str
    project_manager_id: Optional[int]
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
