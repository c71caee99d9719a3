import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: uuid.UUID
    workspace_id: uuid.UUID
    company_id: Optional[uuid.UUID] = None
    actor_id: Optional[uuid.UUID] = None
    actor_email: Optional[str] = None
    action: str
    entity_type: str
    entity_id: uuid.UUID
    before_state: Optional[dict] = None
    after_state: Optional[dict] = None
    changed_fields: Optional[list[str]] = None
    created_at: datetime

    model_config = {"from_attributes": True}
