"""
Project schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)


class ProjectResponse(BaseModel):
    id: int
    tenant_id: int
    created_by: int
    title: str
    description: Optional[str] = None
    archived_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    total: int
