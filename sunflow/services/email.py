import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import resend

from sunflow.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.RESEND_API_KEY


class EmailError(Exception):
    """Falha no envio de e-mail (serviço não configurado ou erro do provedor)."""


def _anexo_resend(anexo: Dict[str, Any]) -> Dict[str, Any]:
    conteudo = anexo["content"]
    if isinstance(conteudo, str):
        conteudo = list(conteudo.encode("utf-8"))
    elif isinstance(conteudo, (bytes, bytearray)):
        conteudo = list(conteudo)
    item = {"filename": anexo["filename"], "content": conteudo}
    if anexo.get("content_type"):
        item["content_type"] = anexo["content_type"]
    return item


def enviar_email(
    destinatarios: Union[str, Sequence[str]],
    assunto: str,
    html: str,
    anexos: Optional[List[Dict[str, Any]]] = None,
    remetente: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Envia um e-mail pelo Resend. Os anexos são dicts {filename, content} com
    conteúdo em texto ou bytes. Lança EmailError em qualquer falha.
    """
    recipients = [destinatarios] if isinstance(destinatarios, str) else list(destinatarios)
    if not recipients:
        raise EmailError("Nenhum destinatário informado.")
    if not settings.RESEND_API_KEY:
        logger.error("Serviço de e-mail não configurado: RESEND_API_KEY ausente.")
        raise EmailError("Serviço de e-mail não configurado.")

    params: Dict[str, Any] = {
        "from": remetente or settings.EMAIL_FROM_ADDRESS,
        "to": recipients,
        "subject": assunto,
        "html": html,
    }
    try:
        if anexos:
            params["attachments"] = [_anexo_resend(a) for a in anexos]
        logger.info(f"Enviando e-mail '{assunto}' para {recipients}")
        response = resend.Emails.send(params)
    except Exception as e:
        logger.error(f"Erro ao enviar e-mail '{assunto}' para {recipients}: {e}")
        raise EmailError(f"Falha ao enviar e-mail: {e}") from e

    logger.info(f"E-mail enviado: {response}")
    return response
