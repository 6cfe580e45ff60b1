import logging
from datetime import date, time, timedelta
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.datas import hoje_local
from sunflow.core.permissions import PERM_VER_OS, PERM_AGENDAR_OS, PERM_VER_CARGA_TRABALHO
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.email_retry import EmailRetry
from sunflow.schemas.enums import StatusEmailRetryEnum
from sunflow.schemas.ordem_servico import OrdemServico, ResultadoConflito, CargaTrabalhoDia, PresencaOS
from sunflow.services import agendamento
from sunflow.services.email_retry import email_retry_service
from sunflow.services.tecnico import tecnico_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/conflitos",
            response_model=ResultadoConflito,
            dependencies=[Depends(deps.PermissionChecker([PERM_AGENDAR_OS]))],
            summary="Verificar conflitos de agenda do técnico")
def read_conflitos(
    db: Session = Depends(deps.get_db),
    tecnico_id: PyUUID = Query(...),
    data: date = Query(..., description="Data programada"),
    hora_inicio: time = Query(...),
    hora_fim: time = Query(...),
    excluir_os_id: Optional[PyUUID] = Query(None, description="OS ignorada na verificação (reagendamento)"),
) -> Any:
    return agendamento.verificar_conflitos(
        db,
        tecnico_id=tecnico_id,
        data_programada=data,
        hora_inicio=hora_inicio,
        hora_fim=hora_fim,
        excluir_os_id=excluir_os_id,
    )


@router.get("/tecnicos/{tecnico_id}",
            response_model=List[OrdemServico],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_OS]))],
            summary="Agenda do técnico no dia")
def read_agenda_tecnico(
    tecnico_id: PyUUID,
    db: Session = Depends(deps.get_db),
    data: Optional[date] = Query(None, description="Padrão: hoje"),
) -> Any:
    tecnico_service.get_or_404(db, id=tecnico_id)
    return agendamento.agenda_do_tecnico(db, tecnico_id=tecnico_id, dia=data or hoje_local())


@router.get("/carga-trabalho",
            response_model=List[CargaTrabalhoDia],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_CARGA_TRABALHO]))],
            summary="Carga de trabalho diária do técnico")
def read_carga_trabalho(
    db: Session = Depends(deps.get_db),
    tecnico_id: PyUUID = Query(...),
    inicio: Optional[date] = Query(None, description="Padrão: hoje"),
    fim: Optional[date] = Query(None, description="Padrão: 7 dias após o início"),
) -> Any:
    inicio = inicio or hoje_local()
    fim = fim or inicio + timedelta(days=7)
    tecnico_service.get_or_404(db, id=tecnico_id)
    return agendamento.carga_trabalho(db, tecnico_id=tecnico_id, inicio=inicio, fim=fim)


@router.get("/presenca",
            response_model=List[PresencaOS],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_OS]))],
            summary="Painel de confirmação de presença")
def read_painel_presenca(
    db: Session = Depends(deps.get_db),
    inicio: Optional[date] = Query(None, description="Padrão: hoje"),
    fim: Optional[date] = Query(None, description="Padrão: igual ao início"),
    tecnico_id: Optional[PyUUID] = Query(None),
) -> Any:
    """Estado de cada OS do período: `confirmada`, `pendente` ou `sem_lembrete`."""
    inicio = inicio or hoje_local()
    return agendamento.painel_presenca(db, inicio=inicio, fim=fim or inicio, tecnico_id=tecnico_id)


@router.get("/fila-emails",
            response_model=List[EmailRetry],
            summary="Fila de reenvio de e-mails")
def read_fila_emails(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.require_admin),
    status_fila: Optional[StatusEmailRetryEnum] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    logger.info(f"Usuário '{current_user.nome_usuario}' consultando a fila de e-mails (status={status_fila}).")
    return email_retry_service.get_multi(
        db, status_fila=status_fila.value if status_fila else None, skip=skip, limit=limit
    )
