import logging
from datetime import date
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query, Request, Response
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.permissions import PERM_VER_OS, PERM_GERAR_OS, PERM_AGENDAR_OS, PERM_CANCELAR_OS
from sunflow.models.tecnico import Tecnico as TecnicoModel
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.enums import TicketStatusEnum
from sunflow.schemas.ordem_servico import OrdemServico, OrdemServicoGerada, AgendamentoUpdate, OSCancelar
from sunflow.services import agendamento
from sunflow.services.ordem_servico import ordem_servico_service, MSG_OS_EXISTENTE, MSG_OS_GERADA

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/gerar/{ticket_id}",
             response_model=OrdemServicoGerada,
             dependencies=[Depends(deps.PermissionChecker([PERM_GERAR_OS]))],
             summary="Gerar ordem de serviço a partir de um ticket aprovado")
async def gerar_ordem_servico(
    *,
    request: Request,
    response: Response,
    db: Session = Depends(deps.get_db),
    ticket_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Gera a OS do ticket e o PDF correspondente. Se a OS já existe ela é
    devolvida com a mensagem "Ordem de serviço já existente".
    """
    logger.info(f"Usuário '{current_user.nome_usuario}' gerando OS para o ticket {ticket_id}.")
    try:
        os, criada = ordem_servico_service.gerar(db, ticket_id=ticket_id, usuario=current_user, request=request)
        if criada:
            await ordem_servico_service.salvar_pdf(db, os=os)
            db.commit()
            db.refresh(os)
            response.status_code = status.HTTP_201_CREATED
            return {"msg": MSG_OS_GERADA, "ordem_servico": os}
        return {"msg": MSG_OS_EXISTENTE, "ordem_servico": os}
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado gerando a OS do ticket {ticket_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao gerar a ordem de serviço.")


@router.get("/",
            response_model=List[OrdemServico],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_OS]))],
            summary="Listar ordens de serviço")
def read_ordens_servico(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    tecnico: Optional[TecnicoModel] = Depends(deps.get_current_tecnico_optional),
    tecnico_id: Optional[PyUUID] = Query(None),
    data_inicio: Optional[date] = Query(None, description="Data programada a partir de"),
    data_fim: Optional[date] = Query(None, description="Data programada até"),
    status_ticket: Optional[TicketStatusEnum] = Query(None, description="Status do ticket"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    if deps.is_tecnico_campo(current_user):
        if not tecnico:
            return []
        tecnico_id = tecnico.id
    return ordem_servico_service.get_multi_filtered(
        db,
        tecnico_id=tecnico_id,
        data_inicio=data_inicio,
        data_fim=data_fim,
        status_ticket=status_ticket.value if status_ticket else None,
        skip=skip,
        limit=limit,
    )


@router.get("/minhas",
            response_model=List[OrdemServico],
            summary="Ordens de serviço do técnico logado")
def read_minhas_ordens_servico(
    db: Session = Depends(deps.get_db),
    tecnico: TecnicoModel = Depends(deps.get_current_tecnico),
    data_inicio: Optional[date] = Query(None),
    data_fim: Optional[date] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    return ordem_servico_service.get_multi_filtered(
        db, tecnico_id=tecnico.id, data_inicio=data_inicio, data_fim=data_fim, skip=skip, limit=limit
    )


@router.get("/{os_id}",
            response_model=OrdemServico,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_OS]))],
            summary="Obter ordem de serviço por ID")
def read_ordem_servico_by_id(os_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    return ordem_servico_service.get_or_404(db, id=os_id)


@router.get("/{os_id}/pdf",
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_OS]))],
            summary="Baixar PDF da ordem de serviço")
async def download_ordem_servico_pdf(os_id: PyUUID, db: Session = Depends(deps.get_db)) -> Response:
    os = ordem_servico_service.get_or_404(db, id=os_id)
    pdf_anterior = os.pdf_url
    try:
        conteudo = await ordem_servico_service.obter_pdf(db, os=os)
        if os.pdf_url != pdf_anterior:
            db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Erro ao obter o PDF da OS {os_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao gerar o PDF da OS.")
    return Response(
        content=conteudo,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{os.numero_os}.pdf"'},
    )


@router.put("/{os_id}/agendamento",
            response_model=OrdemServico,
            dependencies=[Depends(deps.PermissionChecker([PERM_AGENDAR_OS]))],
            summary="Agendar ou reagendar a OS")
def agendar_ordem_servico(
    *,
    request: Request,
    db: Session = Depends(deps.get_db),
    os_id: PyUUID,
    agendamento_in: AgendamentoUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Define data e horários. Conflitos com outra OS do mesmo técnico retornam
    409. O convite de calendário é enviado ao técnico e à equipe; falhas de
    envio ficam registradas na OS e não impedem o agendamento.
    """
    os = ordem_servico_service.get_or_404(db, id=os_id)
    try:
        os = agendamento.agendar(db, os=os, obj_in=agendamento_in, usuario=current_user, request=request)
        db.commit()
        db.refresh(os)
        return os
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado agendando a OS {os_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao agendar a OS.")


@router.post("/{os_id}/cancelar",
             response_model=OrdemServico,
             dependencies=[Depends(deps.PermissionChecker([PERM_CANCELAR_OS]))],
             summary="Cancelar a OS")
def cancelar_ordem_servico(
    *,
    request: Request,
    db: Session = Depends(deps.get_db),
    os_id: PyUUID,
    cancelamento_in: Optional[OSCancelar] = None,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    os = ordem_servico_service.get_or_404(db, id=os_id)
    motivo = cancelamento_in.motivo if cancelamento_in else None
    logger.warning(f"Usuário '{current_user.nome_usuario}' cancelando a OS {os.numero_os}.")
    try:
        os = agendamento.cancelar(db, os=os, usuario=current_user, motivo=motivo, request=request)
        db.commit()
        db.refresh(os)
        return os
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado cancelando a OS {os_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao cancelar a OS.")
