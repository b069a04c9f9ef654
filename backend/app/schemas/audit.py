"""
Audit trail schemas.
"""

from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime


class AuditLogResponse(BaseModel):
    id: int
    action: str
    entity_type: str
    entity_id: int
    performed_by: int
    details: Optional[Dict[str, Any]]
    timestamp: datetime

    class Config:
        from_attributes = True
