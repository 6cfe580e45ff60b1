import logging
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core import storage
from sunflow.core.datas import agora_utc
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.ticket import Ticket
from sunflow.models.usuario import Usuario
from sunflow.schemas.enums import TicketStatusEnum, AcaoAuditoriaEnum, TipoNotificacaoEnum
from sunflow.schemas.ordem_servico import AgendamentoUpdate
from .base_service import BaseService
from .audit_log import audit_log_service
from .geocodificacao import geocodificar_ticket
from .notificacao import notificacao_service
from .numeracao import proximo_numero, SEQ_ORDEM_SERVICO
from .pdf import gerar_pdf_os, nome_arquivo_os
from .ticket import ticket_service

logger = logging.getLogger(__name__)

MSG_OS_EXISTENTE = "Ordem de serviço já existente"
MSG_OS_GERADA = "Ordem de serviço gerada com sucesso"


class OrdemServicoService(BaseService[OrdemServico, BaseModel, AgendamentoUpdate]):
    label = "Ordem de serviço"

    def get_by_ticket(self, db: Session, *, ticket_id: UUID) -> Optional[OrdemServico]:
        statement = select(self.model).where(self.model.ticket_id == ticket_id)
        return db.execute(statement).scalar_one_or_none()

    def get_multi_filtered(
        self,
        db: Session,
        *,
        tecnico_id: Optional[UUID] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        status_ticket: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[OrdemServico]:
        statement = select(self.model)
        if tecnico_id:
            statement = statement.where(self.model.tecnico_id == tecnico_id)
        if data_inicio:
            statement = statement.where(self.model.data_programada >= data_inicio)
        if data_fim:
            statement = statement.where(self.model.data_programada <= data_fim)
        if status_ticket:
            statement = statement.join(Ticket, Ticket.id == self.model.ticket_id).where(Ticket.status == status_ticket)
        statement = statement.order_by(
            self.model.data_programada.desc(), self.model.hora_inicio, self.model.created_at.desc()
        ).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def gerar(
        self, db: Session, *, ticket_id: UUID, usuario: Optional[Usuario] = None, request: Optional[Request] = None
    ) -> Tuple[OrdemServico, bool]:
        """
        Gera a OS de um ticket aprovado. Se a OS já existe ela é devolvida
        sem alterações (segundo valor False).
        NÃO faz db.commit(); o PDF é gravado depois por `salvar_pdf`.
        """
        existente = self.get_by_ticket(db, ticket_id=ticket_id)
        if existente:
            logger.info(f"OS já existente para o ticket {ticket_id}: {existente.numero_os}")
            return existente, False

        ticket = ticket_service.get_or_404(db, id=ticket_id)
        if not ticket.tecnico_responsavel_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"O ticket {ticket.numero_ticket} não possui técnico responsável."
            )
        if ticket.status != TicketStatusEnum.APROVADO.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"O ticket {ticket.numero_ticket} precisa estar aprovado para gerar a OS (status atual: '{ticket.status}')."
            )

        if ticket.latitude is None or ticket.longitude is None:
            if not geocodificar_ticket(db, ticket):
                logger.warning(f"Ticket {ticket.numero_ticket} segue sem coordenadas; a OS será gerada assim mesmo.")

        numero = proximo_numero(db, SEQ_ORDEM_SERVICO)
        os = self.model(
            numero_os=numero,
            ticket_id=ticket.id,
            tecnico_id=ticket.tecnico_responsavel_id,
            data_emissao=agora_utc(),
            data_programada=ticket.data_vencimento,
            qr_code=f"OS-{numero}-{ticket.id}",
            calendar_invite_recipients=[],
            email_error_log=[],
        )
        os.ticket = ticket
        os.tecnico = ticket.tecnico_responsavel
        db.add(os)
        db.flush()

        ticket_service.alterar_status(
            db,
            ticket=ticket,
            novo_status=TicketStatusEnum.ORDEM_SERVICO_GERADA,
            usuario=usuario,
            observacoes=f"OS {numero} gerada",
            request=request,
        )
        if os.tecnico:
            notificacao_service.notificar(
                db,
                usuario_id=os.tecnico.usuario_id,
                titulo=f"Nova OS {numero}",
                mensagem=f"Ordem de serviço gerada para o ticket {ticket.numero_ticket}: {ticket.titulo}",
                tipo=TipoNotificacaoEnum.OS,
                link=f"/ordens-servico/{os.id}",
            )
        audit_log_service.registrar(
            db,
            table_name="ordens_servico",
            record_id=os.id,
            action=AcaoAuditoriaEnum.INSERT,
            usuario_id=usuario.id if usuario else None,
            new_data={"numero_os": numero, "ticket_id": ticket.id, "tecnico_id": os.tecnico_id},
            request=request,
        )
        logger.info(f"OS {numero} gerada para o ticket {ticket.numero_ticket}.")
        return os, True

    async def salvar_pdf(self, db: Session, *, os: OrdemServico) -> str:
        """Gera o PDF, grava em disco e atualiza pdf_url. NÃO faz commit."""
        conteudo = gerar_pdf_os(os)
        caminho = await storage.save_generated_file(conteudo, nome_arquivo_os(os), subdir="ordens_servico")
        os.pdf_url = caminho
        db.add(os)
        return caminho

    async def obter_pdf(self, db: Session, *, os: OrdemServico) -> bytes:
        """Conteúdo do PDF da OS; é regerado quando o arquivo não existe."""
        if os.pdf_url:
            try:
                return await storage.read_file(os.pdf_url)
            except FileNotFoundError:
                logger.warning(f"PDF da OS {os.numero_os} ausente em disco ({os.pdf_url}); gerando novamente.")
        caminho = await self.salvar_pdf(db, os=os)
        return await storage.read_file(caminho)

ordem_servico_service = OrdemServicoService(OrdemServico)
