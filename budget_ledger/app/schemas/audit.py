"""
Audit log schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Any, Dict, List, Optional


class AuditEntryResponse(BaseModel):
    id: int
    actor_id: Optional[int] = None
    actor_name: str
    actor_email: Optional[str] = None
    action: str
    table_name: str
    record_id: Optional[str] = None
    tenant_id: Optional[int] = None
    tenant_name: Optional[str] = None
    details: Dict[str, Any]
    created_at: datetime


class AuditLogListResponse(BaseModel):
    entries: List[AuditEntryResponse]
    total: int
