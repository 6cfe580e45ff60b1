import html
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core.datas import agora_utc, hoje_local
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.ticket import Ticket
from sunflow.schemas.enums import TicketStatusEnum, TipoEmailEnum
from .calendario import destinatarios_os, nome_cliente_os, endereco_os, registrar_erro_email
from .email import enviar_email, EmailError
from .presenca import criar_token, link_confirmacao

logger = logging.getLogger(__name__)

ACAO_LEMBRETE = "reminder"


def os_para_lembrete(db: Session, *, dia: date) -> List[OrdemServico]:
    """OS do dia, com horário e técnico, ainda sem lembrete e não canceladas."""
    statement = (
        select(OrdemServico)
        .join(Ticket, Ticket.id == OrdemServico.ticket_id)
        .where(
            OrdemServico.data_programada == dia,
            OrdemServico.reminder_sent_at.is_(None),
            OrdemServico.hora_inicio.is_not(None),
            OrdemServico.tecnico_id.is_not(None),
            Ticket.status != TicketStatusEnum.CANCELADO.value,
        )
        .order_by(OrdemServico.hora_inicio)
    )
    return list(db.execute(statement).scalars().all())


def montar_lembrete(os: OrdemServico, link: str) -> Dict[str, str]:
    cliente = html.escape(nome_cliente_os(os))
    endereco = html.escape(endereco_os(os) or "-")
    titulo = html.escape(os.ticket.titulo) if os.ticket else "-"
    horario = os.hora_inicio.strftime("%H:%M")
    if os.hora_fim:
        horario += f" - {os.hora_fim.strftime('%H:%M')}"
    corpo = (
        "<h2 style=\"color: #2563eb;\">Lembrete de Ordem de Serviço</h2>"
        "<p>Esta é uma <strong>mensagem de lembrete</strong> sobre a OS agendada para <strong>amanhã</strong>:</p>"
        f"<p><strong>OS:</strong> {html.escape(os.numero_os)}</p>"
        f"<p><strong>Cliente:</strong> {cliente}</p>"
        f"<p><strong>Serviço:</strong> {titulo}</p>"
        f"<p><strong>Data:</strong> {os.data_programada.strftime('%d/%m/%Y')}</p>"
        f"<p><strong>Horário:</strong> {horario}</p>"
        f"<p><strong>Endereço:</strong> {endereco}</p>"
        f"<p><a href=\"{html.escape(link)}\" style=\"background: #16a34a; color: #fff; padding: 10px 18px; "
        "border-radius: 6px; text-decoration: none;\">Confirmar presença</a></p>"
        "<p style=\"color: #6b7280; font-size: 12px;\">O link de confirmação é válido por 24 horas.</p>"
    )
    return {"subject": f"Lembrete: OS {os.numero_os} agendada para amanhã", "html": corpo}


def enviar_lembretes(db: Session, *, hoje: Optional[date] = None) -> Dict[str, int]:
    """
    Envia o lembrete das OS de amanhã com o link de confirmação de presença.
    Faz flush por OS; o commit é do chamador.
    """
    amanha = (hoje or hoje_local()) + timedelta(days=1)
    ordens = os_para_lembrete(db, dia=amanha)
    enviados = 0
    erros = 0

    for os in ordens:
        destinatarios = destinatarios_os(os)
        if not destinatarios:
            erros += 1
            registrar_erro_email(os, tipo=TipoEmailEnum.REMINDER.value, acao=ACAO_LEMBRETE, erro="Sem destinatários")
            db.add(os)
            continue

        token = criar_token(db, os=os)
        conteudo = montar_lembrete(os, link_confirmacao(os.id, token.token))
        try:
            enviar_email(destinatarios, conteudo["subject"], conteudo["html"])
        except EmailError as e:
            erros += 1
            logger.warning(f"Falha no lembrete da OS {os.numero_os}: {e}")
            registrar_erro_email(
                os, tipo=TipoEmailEnum.REMINDER.value, acao=ACAO_LEMBRETE, erro=str(e), detalhes={"recipients": destinatarios}
            )
        else:
            enviados += 1
            os.reminder_sent_at = agora_utc()
        db.add(os)
        db.flush()

    resultado = {"total": len(ordens), "enviados": enviados, "erros": erros}
    logger.info(f"Lembretes de OS para {amanha}: {resultado}")
    return resultado
