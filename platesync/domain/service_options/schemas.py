"""Service option schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator


class ServiceOptionCreate(BaseModel):
    name: str
    value: Optional[str] = None
    isDefault: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class ServiceOptionUpdate(BaseModel):
    name: Optional[str] = None
    value: Optional[str] = None
    isDefault: Optional[bool] = None


class ServiceOptionResponse(BaseModel):
    id: int
    name: str
    value: str
    isDefault: bool
    churchId: str
