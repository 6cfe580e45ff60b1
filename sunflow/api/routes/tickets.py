import logging
from datetime import date
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query, Request, File, UploadFile
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core import storage
from sunflow.core.permissions import (
    PERM_VER_TICKETS, PERM_CRIAR_TICKETS, PERM_EDITAR_TICKETS, PERM_APROVAR_TICKETS,
)
from sunflow.models.cliente import Cliente as ClienteModel
from sunflow.models.tecnico import Tecnico as TecnicoModel
from sunflow.models.ticket import Ticket as TicketModel
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.common import Msg
from sunflow.schemas.enums import TicketStatusEnum, PrioridadeEnum
from sunflow.schemas.ticket import (
    Ticket, TicketCreate, TicketUpdate, TicketStatusUpdate, TicketAprovacaoCreate,
    TicketTecnicoUpdate, StatusHistorico, Aprovacao,
)
from sunflow.services.geocodificacao import geocodificar_ticket
from sunflow.services.ticket import ticket_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _verificar_acesso(ticket: TicketModel, usuario: UsuarioModel, tecnico: Optional[TecnicoModel]):
    """Técnicos de campo só veem os próprios tickets e clientes só os das suas empresas."""
    if deps.is_tecnico_campo(usuario):
        if not tecnico or ticket.tecnico_responsavel_id != tecnico.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Este ticket não está atribuído a você.")
    elif deps.is_cliente(usuario):
        if not ticket.cliente or ticket.cliente.usuario_id != usuario.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Você não tem acesso a este ticket.")


def _get_ticket_acessivel(
    ticket_id: PyUUID,
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    tecnico: Optional[TecnicoModel] = Depends(deps.get_current_tecnico_optional),
) -> TicketModel:
    ticket = ticket_service.get_or_404(db, id=ticket_id)
    _verificar_acesso(ticket, current_user, tecnico)
    return ticket


@router.post("/",
             response_model=Ticket,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_CRIAR_TICKETS]))],
             summary="Abrir ticket")
def create_ticket(
    *,
    db: Session = Depends(deps.get_db),
    ticket_in: TicketCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Abre um ticket com status `aberto` e número `TKT-{ano}-{seq}`.
    As coordenadas do endereço são obtidas depois pela tarefa de geocodificação.
    """
    if deps.is_cliente(current_user):
        cliente = db.get(ClienteModel, ticket_in.cliente_id)
        if cliente and cliente.usuario_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Você só pode abrir tickets para as suas empresas.")

    logger.info(f"Usuário '{current_user.nome_usuario}' abrindo ticket '{ticket_in.titulo}'.")
    try:
        ticket = ticket_service.create(db=db, obj_in=ticket_in, criado_por=current_user)
        db.commit()
        db.refresh(ticket)
        logger.info(f"Ticket {ticket.numero_ticket} criado (ID {ticket.id}).")
        return ticket
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado abrindo o ticket '{ticket_in.titulo}': {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o ticket.")


@router.get("/",
            response_model=List[Ticket],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_TICKETS]))],
            summary="Listar tickets")
def read_tickets(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    tecnico: Optional[TecnicoModel] = Depends(deps.get_current_tecnico_optional),
    status_ticket: Optional[TicketStatusEnum] = Query(None, alias="status"),
    prioridade: Optional[PrioridadeEnum] = Query(None),
    cliente_id: Optional[PyUUID] = Query(None),
    tecnico_id: Optional[PyUUID] = Query(None),
    busca: Optional[str] = Query(None, description="Busca em título, número e descrição"),
    data_inicio: Optional[date] = Query(None, description="Abertos a partir de (inclusive)"),
    data_fim: Optional[date] = Query(None, description="Abertos até (inclusive)"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    cliente_usuario_id = None
    if deps.is_tecnico_campo(current_user):
        if not tecnico:
            return []
        tecnico_id = tecnico.id
    elif deps.is_cliente(current_user):
        cliente_usuario_id = current_user.id

    return ticket_service.get_multi_filtered(
        db,
        status_ticket=status_ticket.value if status_ticket else None,
        prioridade=prioridade.value if prioridade else None,
        cliente_id=cliente_id,
        tecnico_id=tecnico_id,
        cliente_usuario_id=cliente_usuario_id,
        busca=busca,
        data_inicio=data_inicio,
        data_fim=data_fim,
        skip=skip,
        limit=limit,
    )


@router.get("/{ticket_id}",
            response_model=Ticket,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_TICKETS]))],
            summary="Obter ticket por ID")
def read_ticket_by_id(ticket: TicketModel = Depends(_get_ticket_acessivel)) -> Any:
    return ticket


@router.put("/{ticket_id}",
            response_model=Ticket,
            dependencies=[Depends(deps.PermissionChecker([PERM_EDITAR_TICKETS]))],
            summary="Atualizar dados do ticket")
def update_ticket(
    *,
    db: Session = Depends(deps.get_db),
    ticket_id: PyUUID,
    ticket_in: TicketUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    ticket = ticket_service.get_or_404(db, id=ticket_id)
    logger.info(f"Usuário '{current_user.nome_usuario}' atualizando o ticket {ticket.numero_ticket}.")
    try:
        endereco_anterior = ticket.endereco_servico
        ticket = ticket_service.update(db=db, db_obj=ticket, obj_in=ticket_in)
        if ticket.endereco_servico != endereco_anterior:
            # novo endereço: a tarefa de geocodificação recalcula
            ticket.latitude = None
            ticket.longitude = None
            ticket.geocoded_at = None
        db.commit()
        db.refresh(ticket)
        return ticket
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o ticket ID {ticket_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o ticket.")


@router.delete("/{ticket_id}",
               response_model=Msg,
               dependencies=[Depends(deps.PermissionChecker([PERM_EDITAR_TICKETS]))],
               summary="Excluir ticket")
def delete_ticket(
    *,
    db: Session = Depends(deps.get_db),
    ticket_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """Apenas tickets abertos, rejeitados ou cancelados e sem OS."""
    try:
        ticket = ticket_service.remove(db=db, id=ticket_id, usuario=current_user)
        numero = ticket.numero_ticket
        db.commit()
        return {"msg": f"Ticket {numero} excluído com sucesso."}
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado excluindo o ticket ID {ticket_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao excluir o ticket.")

# ==============================================================================
# Ciclo de vida
# ==============================================================================

@router.patch("/{ticket_id}/status",
              response_model=Ticket,
              dependencies=[Depends(deps.PermissionChecker([PERM_EDITAR_TICKETS]))],
              summary="Alterar status do ticket")
def update_ticket_status(
    *,
    request: Request,
    db: Session = Depends(deps.get_db),
    ticket_id: PyUUID,
    status_in: TicketStatusUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Aplica uma transição de status. Transições fora da tabela do ciclo de
    vida retornam 409.
    """
    ticket = ticket_service.get_or_404(db, id=ticket_id)
    try:
        ticket = ticket_service.alterar_status(
            db,
            ticket=ticket,
            novo_status=status_in.status,
            usuario=current_user,
            observacoes=status_in.observacoes,
            request=request,
        )
        db.commit()
        db.refresh(ticket)
        return ticket
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado alterando o status do ticket ID {ticket_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao alterar o status.")


@router.post("/{ticket_id}/aprovacao",
             response_model=Aprovacao,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_APROVAR_TICKETS]))],
             summary="Aprovar ou rejeitar ticket")
def create_ticket_aprovacao(
    *,
    request: Request,
    db: Session = Depends(deps.get_db),
    ticket_id: PyUUID,
    aprovacao_in: TicketAprovacaoCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    ticket = ticket_service.get_or_404(db, id=ticket_id)
    try:
        aprovacao = ticket_service.registrar_aprovacao(
            db, ticket=ticket, obj_in=aprovacao_in, aprovador=current_user, request=request
        )
        db.commit()
        db.refresh(aprovacao)
        return aprovacao
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado na aprovação do ticket ID {ticket_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao registrar a aprovação.")


@router.put("/{ticket_id}/tecnico",
            response_model=Ticket,
            dependencies=[Depends(deps.PermissionChecker([PERM_EDITAR_TICKETS]))],
            summary="Atribuir técnico responsável")
def update_ticket_tecnico(
    *,
    db: Session = Depends(deps.get_db),
    ticket_id: PyUUID,
    tecnico_in: TicketTecnicoUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    ticket = ticket_service.get_or_404(db, id=ticket_id)
    try:
        ticket = ticket_service.atribuir_tecnico(db, ticket=ticket, tecnico_id=tecnico_in.tecnico_id, usuario=current_user)
        db.commit()
        db.refresh(ticket)
        return ticket
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atribuindo técnico ao ticket ID {ticket_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atribuir o técnico.")


@router.post("/{ticket_id}/anexos",
             response_model=Ticket,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_CRIAR_TICKETS, PERM_EDITAR_TICKETS]))],
             summary="Anexar arquivo ao ticket")
async def upload_ticket_anexo(
    *,
    db: Session = Depends(deps.get_db),
    ticket: TicketModel = Depends(_get_ticket_acessivel),
    file: UploadFile = File(...),
) -> Any:
    file_info = await storage.save_upload_file(file, subdir=f"tickets/{ticket.id}")
    try:
        ticket = ticket_service.adicionar_anexo(db, ticket=ticket, caminho=file_info["file_path"])
        db.commit()
        db.refresh(ticket)
        return ticket
    except Exception as e:
        db.rollback()
        logger.error(f"Erro registrando anexo do ticket {ticket.id}: {e}", exc_info=True)
        try:
            await storage.delete_uploaded_file(file_info["file_path"])
        except FileNotFoundError:
            pass
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao salvar o anexo.")


@router.get("/{ticket_id}/historico",
            response_model=List[StatusHistorico],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_TICKETS]))],
            summary="Histórico de status do ticket")
def read_ticket_historico(
    db: Session = Depends(deps.get_db),
    ticket: TicketModel = Depends(_get_ticket_acessivel),
) -> Any:
    return ticket_service.get_historico(db, ticket_id=ticket.id)


@router.post("/{ticket_id}/geocodificar",
             response_model=Ticket,
             dependencies=[Depends(deps.PermissionChecker([PERM_EDITAR_TICKETS]))],
             summary="Geocodificar endereço do ticket")
def geocodificar_ticket_endpoint(
    *,
    db: Session = Depends(deps.get_db),
    ticket_id: PyUUID,
) -> Any:
    ticket = ticket_service.get_or_404(db, id=ticket_id)
    if not geocodificar_ticket(db, ticket):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Não foi possível localizar o endereço do ticket {ticket.numero_ticket}."
        )
    db.commit()
    db.refresh(ticket)
    return ticket
