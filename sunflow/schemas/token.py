import uuid
from typing import Optional

from pydantic import BaseModel

# Resposta do endpoint de login
class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

# Dados contidos no JWT
class TokenPayload(BaseModel):
    sub: uuid.UUID
    type: Optional[str] = None

# Corpo da requisição /refresh-token
class RefreshToken(BaseModel):
    refresh_token: str
