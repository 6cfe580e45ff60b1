"""
Agenda dos técnicos: verificação de conflitos, agendamento e cancelamento
de ordens de serviço, carga de trabalho e acompanhamento de presença.
"""
import logging
from datetime import date, datetime, time
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core.datas import hoje_local
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.usuario import Usuario
from sunflow.schemas.enums import TicketStatusEnum, AcaoAuditoriaEnum, EstadoPresencaEnum
from sunflow.schemas.ordem_servico import (
    AgendamentoUpdate, ConflitoAgenda, ResultadoConflito, CargaTrabalhoDia, PresencaOS
)
from .audit_log import audit_log_service
from .calendario import enviar_convite, ACAO_CRIAR, ACAO_ATUALIZAR, ACAO_CANCELAR
from .ticket import ticket_service

logger = logging.getLogger(__name__)

STATUS_NAO_AGENDAVEIS = {TicketStatusEnum.CONCLUIDO.value, TicketStatusEnum.CANCELADO.value}


def horarios_sobrepoem(inicio: time, fim: time, outro_inicio: time, outro_fim: time) -> bool:
    """Intervalos [inicio, fim) que se tocam apenas na borda não conflitam."""
    return (
        (inicio >= outro_inicio and inicio < outro_fim)
        or (fim > outro_inicio and fim <= outro_fim)
        or (inicio <= outro_inicio and fim >= outro_fim)
    )


def minutos_entre(inicio: time, fim: time) -> int:
    return int((datetime.combine(date.min, fim) - datetime.combine(date.min, inicio)).total_seconds() // 60)


def verificar_conflitos(
    db: Session,
    *,
    tecnico_id: UUID,
    data_programada: date,
    hora_inicio: time,
    hora_fim: time,
    excluir_os_id: Optional[UUID] = None,
) -> ResultadoConflito:
    statement = select(OrdemServico).where(
        OrdemServico.tecnico_id == tecnico_id,
        OrdemServico.data_programada == data_programada,
        OrdemServico.hora_inicio.is_not(None),
        OrdemServico.hora_fim.is_not(None),
    )
    if excluir_os_id:
        statement = statement.where(OrdemServico.id != excluir_os_id)

    conflitos = []
    for os in db.execute(statement).scalars().all():
        if os.ticket and os.ticket.status == TicketStatusEnum.CANCELADO.value:
            continue
        if horarios_sobrepoem(hora_inicio, hora_fim, os.hora_inicio, os.hora_fim):
            conflitos.append(ConflitoAgenda(
                os_id=os.id,
                numero_os=os.numero_os,
                hora_inicio=os.hora_inicio,
                hora_fim=os.hora_fim,
                ticket_titulo=os.ticket.titulo if os.ticket else None,
            ))
    return ResultadoConflito(has_conflict=bool(conflitos), conflicts=conflitos)


def agendar(
    db: Session,
    *,
    os: OrdemServico,
    obj_in: AgendamentoUpdate,
    usuario: Optional[Usuario] = None,
    request: Optional[Request] = None,
) -> OrdemServico:
    """
    Define data e horários da OS, sem permitir dupla alocação do técnico.
    O convite de calendário é enviado em seguida; falhas no envio não
    desfazem o agendamento. NÃO faz db.commit().
    """
    if obj_in.data_programada < hoje_local():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Não é possível agendar para uma data passada.")
    if os.ticket and os.ticket.status in STATUS_NAO_AGENDAVEIS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A OS {os.numero_os} não pode ser agendada: ticket '{os.ticket.status}'."
        )
    if not os.tecnico_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"A OS {os.numero_os} não possui técnico.")

    resultado = verificar_conflitos(
        db,
        tecnico_id=os.tecnico_id,
        data_programada=obj_in.data_programada,
        hora_inicio=obj_in.hora_inicio,
        hora_fim=obj_in.hora_fim,
        excluir_os_id=os.id,
    )
    if resultado.has_conflict:
        numeros = ", ".join(c.numero_os for c in resultado.conflicts)
        logger.warning(f"Agendamento da OS {os.numero_os} recusado: conflito com {numeros}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Conflito de agenda: o técnico já possui {numeros} neste horário."
        )

    anterior = {
        "data_programada": os.data_programada,
        "hora_inicio": os.hora_inicio,
        "hora_fim": os.hora_fim,
    }
    acao = ACAO_ATUALIZAR if os.calendar_invite_sent_at else ACAO_CRIAR

    os.data_programada = obj_in.data_programada
    os.hora_inicio = obj_in.hora_inicio
    os.hora_fim = obj_in.hora_fim
    os.duracao_estimada_min = obj_in.duracao_estimada_min or minutos_entre(obj_in.hora_inicio, obj_in.hora_fim)
    if obj_in.observacoes is not None:
        os.observacoes = obj_in.observacoes
    os.calendar_invite_sent_at = None
    os.reminder_sent_at = None
    db.add(os)

    audit_log_service.registrar(
        db,
        table_name="ordens_servico",
        record_id=os.id,
        action=AcaoAuditoriaEnum.UPDATE,
        usuario_id=usuario.id if usuario else None,
        old_data=anterior,
        new_data={"data_programada": os.data_programada, "hora_inicio": os.hora_inicio, "hora_fim": os.hora_fim},
        request=request,
    )
    logger.info(f"OS {os.numero_os} agendada para {os.data_programada} {os.hora_inicio}-{os.hora_fim}")

    if os.tecnico and os.tecnico.email:
        enviar_convite(db, os, acao)
    return os


def cancelar(
    db: Session,
    *,
    os: OrdemServico,
    usuario: Optional[Usuario] = None,
    motivo: Optional[str] = None,
    request: Optional[Request] = None,
) -> OrdemServico:
    """Cancela o ticket da OS, avisa o calendário e libera a agenda. NÃO faz commit."""
    ticket_service.alterar_status(
        db,
        ticket=os.ticket,
        novo_status=TicketStatusEnum.CANCELADO,
        usuario=usuario,
        observacoes=motivo or f"OS {os.numero_os} cancelada",
        request=request,
    )

    if os.calendar_invite_sent_at and os.data_programada:
        enviar_convite(db, os, ACAO_CANCELAR)

    anterior = {
        "data_programada": os.data_programada,
        "hora_inicio": os.hora_inicio,
        "hora_fim": os.hora_fim,
    }
    os.data_programada = None
    os.hora_inicio = None
    os.hora_fim = None
    os.duracao_estimada_min = None
    db.add(os)

    audit_log_service.registrar(
        db,
        table_name="ordens_servico",
        record_id=os.id,
        action=AcaoAuditoriaEnum.CANCEL,
        usuario_id=usuario.id if usuario else None,
        old_data=anterior,
        new_data={"motivo": motivo},
        request=request,
    )
    logger.info(f"OS {os.numero_os} cancelada.")
    return os


def agenda_do_tecnico(db: Session, *, tecnico_id: UUID, dia: date) -> List[OrdemServico]:
    statement = (
        select(OrdemServico)
        .where(OrdemServico.tecnico_id == tecnico_id, OrdemServico.data_programada == dia)
        .order_by(OrdemServico.hora_inicio)
    )
    return list(db.execute(statement).scalars().all())


def carga_trabalho(db: Session, *, tecnico_id: UUID, inicio: date, fim: date) -> List[CargaTrabalhoDia]:
    if fim < inicio:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A data final deve ser igual ou posterior à inicial.")
    statement = (
        select(OrdemServico)
        .where(
            OrdemServico.tecnico_id == tecnico_id,
            OrdemServico.data_programada >= inicio,
            OrdemServico.data_programada <= fim,
        )
        .order_by(OrdemServico.data_programada)
    )
    dias: Dict[date, CargaTrabalhoDia] = {}
    for os in db.execute(statement).scalars().all():
        dia = dias.setdefault(
            os.data_programada,
            CargaTrabalhoDia(data=os.data_programada, total_os=0, os_concluidas=0, os_pendentes=0, total_minutos=0),
        )
        dia.total_os += 1
        if os.ticket and os.ticket.status == TicketStatusEnum.CONCLUIDO.value:
            dia.os_concluidas += 1
        else:
            dia.os_pendentes += 1
        if os.duracao_estimada_min:
            dia.total_minutos += os.duracao_estimada_min
        elif os.hora_inicio and os.hora_fim:
            dia.total_minutos += minutos_entre(os.hora_inicio, os.hora_fim)
    return list(dias.values())


def estado_presenca(os: OrdemServico) -> EstadoPresencaEnum:
    if os.presence_confirmed_at:
        return EstadoPresencaEnum.CONFIRMADA
    if os.reminder_sent_at:
        return EstadoPresencaEnum.PENDENTE
    return EstadoPresencaEnum.SEM_LEMBRETE


def painel_presenca(
    db: Session, *, inicio: date, fim: date, tecnico_id: Optional[UUID] = None
) -> List[PresencaOS]:
    statement = select(OrdemServico).where(
        OrdemServico.data_programada >= inicio,
        OrdemServico.data_programada <= fim,
    )
    if tecnico_id:
        statement = statement.where(OrdemServico.tecnico_id == tecnico_id)
    statement = statement.order_by(OrdemServico.data_programada, OrdemServico.hora_inicio)
    return [
        PresencaOS(
            os_id=os.id,
            numero_os=os.numero_os,
            data_programada=os.data_programada,
            hora_inicio=os.hora_inicio,
            tecnico_nome=os.tecnico.nome if os.tecnico else None,
            reminder_sent_at=os.reminder_sent_at,
            presence_confirmed_at=os.presence_confirmed_at,
            presence_confirmed_by=os.presence_confirmed_by,
            estado=estado_presenca(os),
        )
        for os in db.execute(statement).scalars().all()
    ]
