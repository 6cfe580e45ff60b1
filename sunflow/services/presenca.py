"""
Confirmação de presença do técnico pelo link enviado no lembrete.

O link é público: o token de uso único vale 24 horas e as tentativas por
IP e OS são limitadas.
"""
import html
import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy.orm import Session
from sqlalchemy import select, func

from sunflow.core.config import settings
from sunflow.core.datas import agora_utc, garantir_utc, LOCAL_TZ
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.presenca_tentativa import PresencaTentativa
from sunflow.models.presenca_token import PresencaToken

logger = logging.getLogger(__name__)

VALIDADE_TOKEN = timedelta(hours=24)
JANELA_TENTATIVAS = timedelta(minutes=15)
MAX_TENTATIVAS = 5

TIPO_SUCESSO = "success"
TIPO_AVISO = "warning"
TIPO_ERRO = "error"

_CORES = {TIPO_SUCESSO: "#16a34a", TIPO_AVISO: "#d97706", TIPO_ERRO: "#dc2626"}


def criar_token(db: Session, *, os: OrdemServico, validade: timedelta = VALIDADE_TOKEN) -> PresencaToken:
    """NÃO faz commit."""
    token = PresencaToken(
        token=secrets.token_urlsafe(32),
        ordem_servico_id=os.id,
        tecnico_id=os.tecnico_id,
        expires_at=agora_utc() + validade,
    )
    db.add(token)
    return token


def link_confirmacao(os_id: UUID, token: str) -> str:
    base = settings.PUBLIC_BASE_URL.rstrip("/")
    return f"{base}{settings.API_V1_STR}/presenca/confirmar?os_id={os_id}&token={token}"


def renderizar_pagina(titulo: str, mensagem: str, tipo: str = TIPO_SUCESSO, detalhes: Optional[str] = None) -> str:
    cor = _CORES.get(tipo, _CORES[TIPO_ERRO])
    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{html.escape(titulo)} - SunFlow</title>
  <style>
    body {{ font-family: Arial, sans-serif; background: #f3f4f6; display: flex; justify-content: center; padding: 40px 16px; }}
    .card {{ background: #fff; border-radius: 12px; padding: 32px; max-width: 480px; width: 100%; box-shadow: 0 4px 16px rgba(0,0,0,.08); text-align: center; }}
    h1 {{ color: {cor}; font-size: 22px; }}
    .message {{ color: #374151; }}
    .details {{ text-align: left; background: #f9fafb; border-radius: 8px; padding: 12px 16px; margin: 16px 0; }}
  </style>
</head>
<body>
  <div class="card">
    <h1>{html.escape(titulo)}</h1>
    {detalhes or ""}
    <p class="message">{html.escape(mensagem)}</p>
  </div>
</body>
</html>"""


def _detalhes_os(os: OrdemServico, confirmado_em=None) -> str:
    linhas = [f"<p><strong>OS:</strong> {html.escape(os.numero_os)}</p>"]
    if os.ticket:
        linhas.append(f"<p><strong>Serviço:</strong> {html.escape(os.ticket.titulo)}</p>")
    if os.data_programada:
        horario = f" às {os.hora_inicio.strftime('%H:%M')}" if os.hora_inicio else ""
        linhas.append(f"<p><strong>Data:</strong> {os.data_programada.strftime('%d/%m/%Y')}{horario}</p>")
    if os.presence_confirmed_by:
        linhas.append(f"<p><strong>Técnico:</strong> {html.escape(os.presence_confirmed_by)}</p>")
    if confirmado_em:
        local = garantir_utc(confirmado_em).astimezone(LOCAL_TZ)
        linhas.append(f"<p><strong>Em:</strong> {local.strftime('%d/%m/%Y %H:%M')}</p>")
    return f"<div class=\"details\">{''.join(linhas)}</div>"


def _tentativas_recentes(db: Session, *, ip: str, os_id: UUID) -> int:
    statement = select(func.count(PresencaTentativa.id)).where(
        PresencaTentativa.ip_address == ip,
        PresencaTentativa.ordem_servico_id == os_id,
        PresencaTentativa.created_at >= agora_utc() - JANELA_TENTATIVAS,
    )
    return db.execute(statement).scalar_one()


def _registrar_tentativa(db: Session, *, ip: str, os_id: Optional[UUID], sucesso: bool) -> PresencaTentativa:
    tentativa = PresencaTentativa(ordem_servico_id=os_id, ip_address=ip, sucesso=sucesso, created_at=agora_utc())
    db.add(tentativa)
    db.flush()
    return tentativa


def confirmar_presenca(db: Session, *, os_id: Optional[str], token: Optional[str], ip: str) -> Tuple[int, str]:
    """
    Processa o link de confirmação e devolve (status HTTP, página HTML).
    Tentativas ficam registradas mesmo quando a confirmação falha; o
    chamador deve fazer commit em todos os casos.
    """
    if not os_id or not token:
        return status.HTTP_400_BAD_REQUEST, renderizar_pagina(
            "Link inválido", "Parâmetros obrigatórios ausentes. Use o link recebido por e-mail.", TIPO_ERRO
        )
    try:
        os_uuid = UUID(os_id)
    except ValueError:
        return status.HTTP_400_BAD_REQUEST, renderizar_pagina("Link inválido", "Identificador da OS inválido.", TIPO_ERRO)

    if _tentativas_recentes(db, ip=ip, os_id=os_uuid) >= MAX_TENTATIVAS:
        logger.warning(f"Limite de tentativas de confirmação atingido: IP {ip}, OS {os_uuid}")
        return status.HTTP_429_TOO_MANY_REQUESTS, renderizar_pagina(
            "Erro", "Muitas tentativas. Por favor, aguarde 15 minutos antes de tentar novamente.", TIPO_ERRO
        )

    tentativa = _registrar_tentativa(db, ip=ip, os_id=os_uuid, sucesso=False)

    os = db.get(OrdemServico, os_uuid)
    if not os:
        return status.HTTP_404_NOT_FOUND, renderizar_pagina("OS não encontrada", "A ordem de serviço informada não existe.", TIPO_ERRO)

    registro = db.execute(select(PresencaToken).where(PresencaToken.token == token)).scalar_one_or_none()
    agora = agora_utc()
    if (
        registro is None
        or registro.ordem_servico_id != os.id
        or registro.used_at is not None
        or garantir_utc(registro.expires_at) < agora
    ):
        if os.presence_confirmed_at:
            return status.HTTP_200_OK, renderizar_pagina(
                "Presença já confirmada!",
                "Esta ordem de serviço já teve a presença confirmada anteriormente.",
                TIPO_AVISO,
                _detalhes_os(os, os.presence_confirmed_at),
            )
        logger.warning(f"Token de presença inválido ou expirado para a OS {os.numero_os} (IP {ip})")
        return status.HTTP_400_BAD_REQUEST, renderizar_pagina(
            "Link inválido ou expirado",
            "Este link de confirmação não é mais válido. Entre em contato com a equipe de operação.",
            TIPO_ERRO,
        )

    if os.presence_confirmed_at:
        return status.HTTP_200_OK, renderizar_pagina(
            "Presença já confirmada!",
            "Esta ordem de serviço já teve a presença confirmada anteriormente.",
            TIPO_AVISO,
            _detalhes_os(os, os.presence_confirmed_at),
        )

    os.presence_confirmed_at = agora
    os.presence_confirmed_by = os.tecnico.nome if os.tecnico else "Técnico"
    registro.used_at = agora
    tentativa.sucesso = True
    db.add_all([os, registro, tentativa])
    logger.info(f"Presença confirmada na OS {os.numero_os} por '{os.presence_confirmed_by}' (IP {ip})")
    return status.HTTP_200_OK, renderizar_pagina(
        "Presença Confirmada!",
        "Obrigado por confirmar sua presença! A equipe foi notificada.",
        TIPO_SUCESSO,
        _detalhes_os(os),
    )
