from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ActivityRead(BaseModel):
    id: int
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    description: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
