"""Funções auxiliares compartilhadas pelos testes (montagem de cenários e login)."""
import json
import logging
from typing import Dict, Optional

import httpx
from httpx import AsyncClient
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.models import Cliente, OrdemServico, Tecnico, Ticket, Usuario
from sunflow.schemas.enums import PrioridadeEnum, TicketStatusEnum
from sunflow.schemas.ticket import TicketCreate
from sunflow.services.ordem_servico import ordem_servico_service
from sunflow.services.ticket import ticket_service

logger = logging.getLogger(__name__)

TEST_ADMIN_PASSWORD = "AdminSenha123!"
TEST_AREA_TECNICA_PASSWORD = "AreaTecnica123!"
TEST_TECNICO_PASSWORD = "TecnicoSenha123!"
TEST_CLIENTE_PASSWORD = "ClienteSenha123!"


async def get_auth_token(client: AsyncClient, username: str, password: str) -> Optional[str]:
    """Faz login pelo formulário OAuth2 e devolve o token de acesso."""
    url = f"{settings.API_V1_STR}/auth/login/access-token"
    try:
        response = await client.post(url, data={"username": username, "password": password})
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        try:
            detalhe = e.response.json()
        except json.JSONDecodeError:
            detalhe = e.response.text
        logger.error(f"FALHA ao obter token para '{username}': status {e.response.status_code}, detalhe {detalhe}")
        return None
    return response.json().get("access_token")

def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def criar_ticket(
    db: Session,
    *,
    cliente: Cliente,
    tecnico: Optional[Tecnico] = None,
    criado_por: Optional[Usuario] = None,
    titulo: str = "Inversor sem comunicação",
    prioridade: PrioridadeEnum = PrioridadeEnum.MEDIA,
    status_ticket: Optional[TicketStatusEnum] = None,
    **extra,
) -> Ticket:
    """Abre um ticket pelo serviço e, se pedido, força o status para montar o cenário."""
    ticket = ticket_service.create(
        db,
        obj_in=TicketCreate(
            titulo=titulo,
            cliente_id=cliente.id,
            prioridade=prioridade,
            tecnico_responsavel_id=tecnico.id if tecnico else None,
            **extra,
        ),
        criado_por=criado_por,
    )
    if status_ticket:
        ticket.status = status_ticket.value
    db.commit()
    db.refresh(ticket)
    return ticket

def criar_os(db: Session, *, ticket: Ticket, usuario: Optional[Usuario] = None) -> OrdemServico:
    """Gera a OS de um ticket aprovado (sem PDF)."""
    os_obj, _ = ordem_servico_service.gerar(db, ticket_id=ticket.id, usuario=usuario)
    db.commit()
    db.refresh(os_obj)
    return os_obj
