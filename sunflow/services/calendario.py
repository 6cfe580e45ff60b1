"""
Convites de calendário (iCalendar) das ordens de serviço.

O convite vai para o técnico e para a equipe de O&M. Falhas de envio nunca
interrompem o agendamento: ficam no log de erros da OS e, para criação e
atualização, entram na fila de reenvio.
"""
import html
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.core.datas import agora_utc
from sunflow.models.ordem_servico import OrdemServico
from sunflow.schemas.enums import TipoEmailEnum
from .email import enviar_email, EmailError
from .email_retry import email_retry_service

logger = logging.getLogger(__name__)

ACAO_CRIAR = "create"
ACAO_ATUALIZAR = "update"
ACAO_CANCELAR = "cancel"

DOMINIO_UID = "sunflow.grupoevolight.com.br"
NOME_ORGANIZADOR = "SunFlow"
DURACAO_PADRAO_MIN = 120


def escapar_texto_ics(texto: Optional[str]) -> str:
    if not texto:
        return ""
    return (
        str(texto)
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def formatar_data_ics(valor: datetime) -> str:
    return valor.strftime("%Y%m%dT%H%M%S")


def nome_cliente_os(os: OrdemServico) -> str:
    ticket = os.ticket
    if ticket and ticket.cliente and ticket.cliente.empresa:
        return ticket.cliente.empresa
    return "Cliente"


def endereco_os(os: OrdemServico) -> str:
    ticket = os.ticket
    if ticket and ticket.endereco_servico:
        return ticket.endereco_servico
    if ticket and ticket.cliente and ticket.cliente.endereco:
        return ticket.cliente.endereco
    return ""


def destinatarios_os(os: OrdemServico) -> List[str]:
    """Técnico e equipe, sem repetição."""
    destinatarios: List[str] = []
    for email in (os.tecnico.email if os.tecnico else None, settings.TEAM_EMAIL):
        if email and email.lower() not in [d.lower() for d in destinatarios]:
            destinatarios.append(email)
    return destinatarios


def registrar_erro_email(os: OrdemServico, *, tipo: str, acao: str, erro: str, detalhes: Optional[Dict[str, Any]] = None):
    entrada = {
        "timestamp": agora_utc().isoformat(),
        "type": tipo,
        "action": acao,
        "error": erro,
        "details": detalhes or {},
    }
    # lista nova para o ORM detectar a alteração na coluna JSON
    os.email_error_log = [*(os.email_error_log or []), entrada]


def gerar_ics(os: OrdemServico, acao: str, destinatarios: List[str], agora: Optional[datetime] = None) -> str:
    if not (os.data_programada and os.hora_inicio and os.hora_fim):
        raise ValueError(f"OS {os.numero_os} sem data/horário programado.")

    agora = agora or agora_utc()
    inicio = datetime.combine(os.data_programada, os.hora_inicio)
    fim = datetime.combine(os.data_programada, os.hora_fim)
    cliente = nome_cliente_os(os)
    endereco = endereco_os(os)
    tecnico = os.tecnico.nome if os.tecnico else ""
    titulo = os.ticket.titulo if os.ticket else ""

    cancelar = acao == ACAO_CANCELAR
    # "update" só é usado quando já houve um convite anterior
    sequencia = 1 if acao == ACAO_ATUALIZAR else 0
    descricao = (
        f"Ordem de Serviço\n\nCliente: {cliente}\nTécnico: {tecnico}\n"
        f"Endereço: {endereco}\n\nDescrição: {titulo}"
    )

    linhas = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//SunFlow//Agendamento OS//PT",
        f"METHOD:{'CANCEL' if cancelar else 'REQUEST'}",
        "CALSCALE:GREGORIAN",
        "BEGIN:VEVENT",
        f"UID:os-{os.numero_os}@{DOMINIO_UID}",
        f"DTSTAMP:{formatar_data_ics(agora.astimezone(timezone.utc))}Z",
        f"DTSTART:{formatar_data_ics(inicio)}",
        f"DTEND:{formatar_data_ics(fim)}",
        f"SUMMARY:{escapar_texto_ics(f'{os.numero_os} - {cliente}')}",
        f"DESCRIPTION:{escapar_texto_ics(descricao)}",
        f"LOCATION:{escapar_texto_ics(endereco)}",
        f"STATUS:{'CANCELLED' if cancelar else 'CONFIRMED'}",
        f"SEQUENCE:{sequencia}",
        f"ORGANIZER;CN={NOME_ORGANIZADOR}:mailto:{_email_remetente()}",
    ]
    for email in destinatarios:
        nome = tecnico if os.tecnico and email == os.tecnico.email else "Equipe O&M"
        linhas.append(f"ATTENDEE;CN={escapar_texto_ics(nome)};RSVP=TRUE:mailto:{email}")
    linhas += [
        "BEGIN:VALARM",
        "TRIGGER:-PT30M",
        "ACTION:DISPLAY",
        "DESCRIPTION:Lembrete: OS em 30 minutos",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(linhas)


def _email_remetente() -> str:
    remetente = settings.EMAIL_FROM_ADDRESS
    if "<" in remetente and ">" in remetente:
        return remetente.split("<", 1)[1].split(">", 1)[0]
    return remetente


def montar_convite(os: OrdemServico, acao: str, destinatarios: List[str]) -> Dict[str, Any]:
    """Assunto, corpo HTML e anexo .ics do convite."""
    if not (os.data_programada and os.hora_inicio):
        raise ValueError(f"OS {os.numero_os} sem data/horário programado.")
    cliente = nome_cliente_os(os)
    data_hora = f"{os.data_programada.strftime('%d/%m/%Y')} às {os.hora_inicio.strftime('%H:%M')}"
    tecnico = os.tecnico.nome if os.tecnico else "-"
    endereco = endereco_os(os) or "-"

    if acao == ACAO_CANCELAR:
        assunto = f"Cancelamento: {os.numero_os} - {cliente}"
        titulo = "Ordem de Serviço Cancelada"
        rodape = "Este evento foi cancelado. O convite em anexo remove o evento do seu calendário."
        duracao = ""
    else:
        assunto = f"Agendamento: {os.numero_os} - {cliente}"
        titulo = "Ordem de Serviço Reagendada" if acao == ACAO_ATUALIZAR else "Nova Ordem de Serviço Agendada"
        rodape = "Abra o arquivo em anexo e clique em \"Aceitar\" para adicionar o agendamento ao seu calendário."
        duracao = f"<p><strong>Duração:</strong> {os.duracao_estimada_min or DURACAO_PADRAO_MIN} minutos</p>"

    corpo = (
        f"<h2>{titulo}</h2>"
        f"<p><strong>OS:</strong> {html.escape(os.numero_os)}</p>"
        f"<p><strong>Cliente:</strong> {html.escape(cliente)}</p>"
        f"<p><strong>Técnico:</strong> {html.escape(tecnico)}</p>"
        f"<p><strong>Data:</strong> {data_hora}</p>"
        f"{duracao}"
        f"<p><strong>Endereço:</strong> {html.escape(endereco)}</p>"
        f"<hr><p style=\"color: #666; font-size: 12px;\">{rodape}</p>"
    )
    return {
        "subject": assunto,
        "html": corpo,
        "attachments": [{"filename": "convite.ics", "content": gerar_ics(os, acao, destinatarios), "content_type": "text/calendar"}],
    }


def enviar_convite(db: Session, os: OrdemServico, acao: str) -> bool:
    """
    Envia o convite da OS. Devolve True quando o e-mail saiu.
    NÃO faz commit; as alterações na OS e na fila ficam na sessão.
    """
    destinatarios = destinatarios_os(os)
    if not os.tecnico or not os.tecnico.email:
        logger.info(f"OS {os.numero_os}: técnico sem e-mail, convite não enviado.")
        return False

    try:
        payload = montar_convite(os, acao, destinatarios)
    except ValueError as e:
        logger.warning(f"Convite da OS {os.numero_os} não gerado: {e}")
        registrar_erro_email(os, tipo=TipoEmailEnum.CALENDAR_INVITE.value, acao=acao, erro=str(e))
        return False

    try:
        enviar_email(destinatarios, payload["subject"], payload["html"], payload["attachments"])
    except EmailError as e:
        logger.warning(f"Falha no convite ({acao}) da OS {os.numero_os}: {e}")
        registrar_erro_email(
            os, tipo=TipoEmailEnum.CALENDAR_INVITE.value, acao=acao, erro=str(e), detalhes={"recipients": destinatarios}
        )
        if acao != ACAO_CANCELAR:
            email_retry_service.enfileirar(
                db,
                email_type=TipoEmailEnum.CALENDAR_INVITE,
                ordem_servico_id=os.id,
                recipients=destinatarios,
                payload=payload,
                atraso=timedelta(minutes=1),
            )
        db.add(os)
        return False

    if acao != ACAO_CANCELAR:
        os.calendar_invite_sent_at = agora_utc()
        os.calendar_invite_recipients = destinatarios
    db.add(os)
    logger.info(f"Convite ({acao}) da OS {os.numero_os} enviado para {destinatarios}")
    return True
