"""Email template schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class EmailTemplateUpdate(BaseModel):
    subject: Optional[str] = None
    bodyHtml: Optional[str] = None
    bodyText: Optional[str] = None


class EmailTemplateResponse(BaseModel):
    id: int
    templateType: str
    subject: str
    bodyHtml: str
    bodyText: Optional[str] = None
    churchId: Optional[str] = None
    updatedAt: Optional[datetime] = None
