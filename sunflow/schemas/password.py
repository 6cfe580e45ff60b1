from pydantic import BaseModel, Field


class PasswordChange(BaseModel):
    """
    Troca de senha do usuário autenticado.
    """
    current_password: str = Field(..., description="Senha atual do usuário.")
    new_password: str = Field(..., min_length=8, description="Nova senha.")
