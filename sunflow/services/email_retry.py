import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core.datas import agora_utc
from sunflow.models.email_retry import EmailRetry
from sunflow.schemas.enums import TipoEmailEnum, StatusEmailRetryEnum
from .email import enviar_email, EmailError

logger = logging.getLogger(__name__)

LOTE_PROCESSAMENTO = 10
TIPOS_SUPORTADOS = {TipoEmailEnum.CALENDAR_INVITE.value, TipoEmailEnum.REMINDER.value}


def atraso_proxima_tentativa(tentativas: int) -> timedelta:
    """Espera exponencial: 2^tentativas minutos."""
    return timedelta(minutes=2 ** tentativas)


class EmailRetryService:
    """
    Fila de reenvio de e-mails que falharam (convites e lembretes).
    Processada periodicamente pelo worker.
    """
    model = EmailRetry

    def enfileirar(
        self,
        db: Session,
        *,
        email_type: TipoEmailEnum,
        recipients: List[str],
        payload: Dict[str, Any],
        ordem_servico_id: Optional[UUID] = None,
        atraso: timedelta = timedelta(minutes=1),
    ) -> EmailRetry:
        """NÃO faz commit."""
        item = self.model(
            email_type=email_type.value,
            ordem_servico_id=ordem_servico_id,
            recipients=list(recipients),
            payload=payload,
            status=StatusEmailRetryEnum.PENDING.value,
            attempt_count=0,
            next_retry_at=agora_utc() + atraso,
        )
        db.add(item)
        logger.info(f"E-mail '{email_type.value}' para {recipients} adicionado à fila de reenvio.")
        return item

    def get_multi(self, db: Session, *, status_fila: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[EmailRetry]:
        statement = select(self.model)
        if status_fila:
            statement = statement.where(self.model.status == status_fila)
        statement = statement.order_by(self.model.next_retry_at.desc()).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def get_prontos(self, db: Session, *, limite: int = LOTE_PROCESSAMENTO) -> List[EmailRetry]:
        statement = (
            select(self.model)
            .where(self.model.status == StatusEmailRetryEnum.PENDING.value, self.model.next_retry_at <= agora_utc())
            .order_by(self.model.next_retry_at)
            .limit(limite)
        )
        return list(db.execute(statement).scalars().all())

    def _enviar(self, item: EmailRetry):
        if item.email_type not in TIPOS_SUPORTADOS:
            raise EmailError(f"Tipo de e-mail desconhecido: {item.email_type}")
        payload = item.payload or {}
        enviar_email(
            item.recipients,
            payload.get("subject", ""),
            payload.get("html", ""),
            payload.get("attachments"),
        )

    def processar_fila(self, db: Session, *, limite: int = LOTE_PROCESSAMENTO) -> Dict[str, int]:
        """
        Reenvia os itens vencidos. Sucesso encerra o item; falha reagenda com
        espera exponencial até esgotar max_attempts. Faz flush por item; o
        commit é do chamador.
        """
        itens = self.get_prontos(db, limite=limite)
        for item in itens:
            item.status = StatusEmailRetryEnum.PROCESSING.value
        db.flush()

        sucesso = 0
        falhas = 0
        for item in itens:
            item.last_attempt_at = agora_utc()
            try:
                self._enviar(item)
            except Exception as e:
                if not isinstance(e, EmailError):
                    logger.error(f"Erro inesperado reenviando o e-mail {item.id}: {e}", exc_info=True)
                falhas += 1
                item.attempt_count = (item.attempt_count or 0) + 1
                item.last_error = str(e)
                if item.attempt_count >= item.max_attempts:
                    item.status = StatusEmailRetryEnum.FAILED.value
                    logger.error(f"E-mail {item.id} ({item.email_type}) descartado após {item.attempt_count} tentativas: {e}")
                else:
                    item.status = StatusEmailRetryEnum.PENDING.value
                    item.next_retry_at = agora_utc() + atraso_proxima_tentativa(item.attempt_count)
                    logger.warning(f"E-mail {item.id} falhou (tentativa {item.attempt_count}); nova tentativa em {item.next_retry_at}")
            else:
                sucesso += 1
                item.status = StatusEmailRetryEnum.SUCCESS.value
                item.last_error = None
                logger.info(f"E-mail {item.id} ({item.email_type}) reenviado com sucesso.")
            db.add(item)
            db.flush()

        resultado = {"processados": len(itens), "sucesso": sucesso, "falhas": falhas}
        logger.info(f"Fila de e-mails processada: {resultado}")
        return resultado

email_retry_service = EmailRetryService()
