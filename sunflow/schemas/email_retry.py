import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict

from .enums import TipoEmailEnum, StatusEmailRetryEnum


class EmailRetry(BaseModel):
    id: uuid.UUID
    email_type: TipoEmailEnum
    ordem_servico_id: Optional[uuid.UUID] = None
    recipients: List[str] = Field(default_factory=list)
    payload: Dict[str, Any] = Field(default_factory=dict)
    status: StatusEmailRetryEnum
    attempt_count: int
    max_attempts: int
    next_retry_at: datetime
    last_error: Optional[str] = None
    last_attempt_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
