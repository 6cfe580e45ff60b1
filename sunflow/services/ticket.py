import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Set
from uuid import UUID

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session
from sqlalchemy import select, or_, and_

from sunflow.core.datas import agora_utc, LOCAL_TZ
from sunflow.models.aprovacao import Aprovacao
from sunflow.models.cliente import Cliente
from sunflow.models.status_historico import StatusHistorico
from sunflow.models.ticket import Ticket
from sunflow.models.usuario import Usuario
from sunflow.schemas.enums import (
    TicketStatusEnum, StatusAprovacaoTicketEnum, TipoNotificacaoEnum, AcaoAuditoriaEnum
)
from sunflow.schemas.ticket import TicketCreate, TicketUpdate, TicketAprovacaoCreate
from .base_service import BaseService
from .audit_log import audit_log_service
from .notificacao import notificacao_service
from .numeracao import proximo_numero, SEQ_TICKET
from .tecnico import tecnico_service

logger = logging.getLogger(__name__)

S = TicketStatusEnum

TRANSICOES_PERMITIDAS: Dict[S, Set[S]] = {
    S.ABERTO: {S.AGUARDANDO_APROVACAO, S.CANCELADO},
    S.AGUARDANDO_APROVACAO: {S.APROVADO, S.REJEITADO, S.CANCELADO},
    S.REJEITADO: {S.ABERTO, S.CANCELADO},
    S.APROVADO: {S.ORDEM_SERVICO_GERADA, S.CANCELADO},
    S.ORDEM_SERVICO_GERADA: {S.EM_EXECUCAO, S.CANCELADO},
    S.EM_EXECUCAO: {S.AGUARDANDO_RME, S.CONCLUIDO, S.CANCELADO},
    S.AGUARDANDO_RME: {S.CONCLUIDO, S.EM_EXECUCAO, S.CANCELADO},
    S.CONCLUIDO: set(),
    S.CANCELADO: set(),
}

STATUS_EXCLUIVEIS = {S.ABERTO.value, S.REJEITADO.value, S.CANCELADO.value}
STATUS_ENCERRADOS = {S.CONCLUIDO.value, S.CANCELADO.value}

ROTULOS_STATUS = {
    S.ABERTO: "Aberto",
    S.AGUARDANDO_APROVACAO: "Aguardando aprovação",
    S.APROVADO: "Aprovado",
    S.REJEITADO: "Rejeitado",
    S.ORDEM_SERVICO_GERADA: "Ordem de serviço gerada",
    S.EM_EXECUCAO: "Em execução",
    S.AGUARDANDO_RME: "Aguardando RME",
    S.CONCLUIDO: "Concluído",
    S.CANCELADO: "Cancelado",
}


def transicao_permitida(atual: str, novo: str) -> bool:
    return S(novo) in TRANSICOES_PERMITIDAS.get(S(atual), set())


def _inicio_do_dia(dia: date) -> datetime:
    return datetime.combine(dia, time.min, tzinfo=LOCAL_TZ).astimezone(timezone.utc)


class TicketService(BaseService[Ticket, TicketCreate, TicketUpdate]):
    """
    Ciclo de vida dos tickets. Toda mudança de status passa por
    `alterar_status`, que valida a transição, grava o histórico, notifica o
    criador e registra a auditoria.
    """
    label = "Ticket"

    def get_multi_filtered(
        self,
        db: Session,
        *,
        status_ticket: Optional[str] = None,
        prioridade: Optional[str] = None,
        cliente_id: Optional[UUID] = None,
        tecnico_id: Optional[UUID] = None,
        cliente_usuario_id: Optional[UUID] = None,
        busca: Optional[str] = None,
        data_inicio: Optional[date] = None,
        data_fim: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Ticket]:
        statement = select(self.model)
        if status_ticket:
            statement = statement.where(self.model.status == status_ticket)
        if prioridade:
            statement = statement.where(self.model.prioridade == prioridade)
        if cliente_id:
            statement = statement.where(self.model.cliente_id == cliente_id)
        if tecnico_id:
            statement = statement.where(self.model.tecnico_responsavel_id == tecnico_id)
        if cliente_usuario_id:
            # portal do cliente: apenas os tickets das empresas ligadas ao usuário
            statement = statement.join(Cliente, Cliente.id == self.model.cliente_id).where(
                Cliente.usuario_id == cliente_usuario_id
            )
        if busca:
            termo = f"%{busca}%"
            statement = statement.where(or_(
                self.model.titulo.ilike(termo),
                self.model.numero_ticket.ilike(termo),
                self.model.descricao.ilike(termo),
            ))
        if data_inicio:
            statement = statement.where(self.model.data_abertura >= _inicio_do_dia(data_inicio))
        if data_fim:
            statement = statement.where(self.model.data_abertura < _inicio_do_dia(data_fim + timedelta(days=1)))
        statement = statement.order_by(self.model.data_abertura.desc()).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def get_atrasados(self, db: Session, *, hoje: date, limit: int = 20) -> List[Ticket]:
        statement = (
            select(self.model)
            .where(and_(
                self.model.data_vencimento.is_not(None),
                self.model.data_vencimento < hoje,
                self.model.status.not_in(STATUS_ENCERRADOS),
            ))
            .order_by(self.model.data_vencimento)
            .limit(limit)
        )
        return list(db.execute(statement).scalars().all())

    def _registrar_historico(
        self, db: Session, *, ticket: Ticket, anterior: Optional[str], novo: str,
        usuario_id: Optional[UUID], observacoes: Optional[str] = None
    ) -> StatusHistorico:
        entrada = StatusHistorico(
            ticket_id=ticket.id,
            status_anterior=anterior,
            status_novo=novo,
            alterado_por=usuario_id,
            observacoes=observacoes,
            created_at=agora_utc(),
        )
        db.add(entrada)
        return entrada

    def create(self, db: Session, *, obj_in: TicketCreate, criado_por: Optional[Usuario] = None) -> Ticket:
        """
        Abre um ticket com número sequencial do ano.
        NÃO faz db.commit().
        """
        if not db.get(Cliente, obj_in.cliente_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Cliente com ID {obj_in.cliente_id} não encontrado.")
        if obj_in.tecnico_responsavel_id:
            tecnico_service.get_ativo_or_404(db, obj_in.tecnico_responsavel_id)

        data = obj_in.model_dump()
        db_obj = self.model(
            **data,
            numero_ticket=proximo_numero(db, SEQ_TICKET),
            status=S.ABERTO.value,
            criado_por=criado_por.id if criado_por else None,
            data_abertura=agora_utc(),
            anexos=[],
        )
        db.add(db_obj)
        db.flush()
        self._registrar_historico(
            db, ticket=db_obj, anterior=None, novo=S.ABERTO.value,
            usuario_id=db_obj.criado_por, observacoes="Ticket aberto"
        )
        logger.info(f"Ticket {db_obj.numero_ticket} preparado para criação (cliente {db_obj.cliente_id}).")
        return db_obj

    def alterar_status(
        self,
        db: Session,
        *,
        ticket: Ticket,
        novo_status: S,
        usuario: Optional[Usuario] = None,
        observacoes: Optional[str] = None,
        request: Optional[Request] = None,
    ) -> Ticket:
        """
        Aplica uma transição de status. Transições fora da tabela geram 409.
        NÃO faz db.commit().
        """
        novo = S(novo_status)
        anterior = ticket.status
        if not transicao_permitida(anterior, novo.value):
            logger.warning(f"Transição inválida do ticket {ticket.numero_ticket}: {anterior} -> {novo.value}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Transição de status inválida: '{anterior}' para '{novo.value}'."
            )

        ticket.status = novo.value
        if novo == S.EM_EXECUCAO and not ticket.data_inicio_execucao:
            ticket.data_inicio_execucao = agora_utc()
        if novo == S.CONCLUIDO:
            ticket.data_conclusao = agora_utc()
        db.add(ticket)

        usuario_id = usuario.id if usuario else None
        self._registrar_historico(
            db, ticket=ticket, anterior=anterior, novo=novo.value, usuario_id=usuario_id, observacoes=observacoes
        )
        if ticket.criado_por and ticket.criado_por != usuario_id:
            notificacao_service.notificar(
                db,
                usuario_id=ticket.criado_por,
                titulo=f"Ticket {ticket.numero_ticket}: {ROTULOS_STATUS[novo]}",
                mensagem=f"O ticket '{ticket.titulo}' mudou de '{ROTULOS_STATUS[S(anterior)]}' para '{ROTULOS_STATUS[novo]}'.",
                tipo=TipoNotificacaoEnum.TICKET,
                link=f"/tickets/{ticket.id}",
            )
        audit_log_service.registrar(
            db,
            table_name="tickets",
            record_id=ticket.id,
            action=AcaoAuditoriaEnum.STATUS,
            usuario_id=usuario_id,
            old_data={"status": anterior},
            new_data={"status": novo.value, "observacoes": observacoes},
            request=request,
        )
        logger.info(f"Ticket {ticket.numero_ticket}: {anterior} -> {novo.value} (usuário {usuario_id})")
        return ticket

    def registrar_aprovacao(
        self,
        db: Session,
        *,
        ticket: Ticket,
        obj_in: TicketAprovacaoCreate,
        aprovador: Usuario,
        request: Optional[Request] = None,
    ) -> Aprovacao:
        """Aprova ou rejeita um ticket que aguarda aprovação. NÃO faz commit."""
        if ticket.status != S.AGUARDANDO_APROVACAO.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"O ticket {ticket.numero_ticket} não está aguardando aprovação (status atual: '{ticket.status}')."
            )
        decisao = StatusAprovacaoTicketEnum(obj_in.status)
        observacoes = (obj_in.observacoes or "").strip() or None
        if decisao == StatusAprovacaoTicketEnum.REJEITADO and not observacoes:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Informe as observações com o motivo da rejeição."
            )

        aprovacao = Aprovacao(
            ticket_id=ticket.id,
            aprovador_id=aprovador.id,
            status=decisao.value,
            observacoes=observacoes,
            data_aprovacao=agora_utc(),
        )
        db.add(aprovacao)
        novo = S.APROVADO if decisao == StatusAprovacaoTicketEnum.APROVADO else S.REJEITADO
        self.alterar_status(db, ticket=ticket, novo_status=novo, usuario=aprovador, observacoes=observacoes, request=request)
        audit_log_service.registrar(
            db,
            table_name="tickets",
            record_id=ticket.id,
            action=AcaoAuditoriaEnum.APPROVE if novo == S.APROVADO else AcaoAuditoriaEnum.REJECT,
            usuario_id=aprovador.id,
            new_data={"decisao": decisao.value, "observacoes": observacoes},
            request=request,
        )
        return aprovacao

    def atribuir_tecnico(self, db: Session, *, ticket: Ticket, tecnico_id: UUID, usuario: Optional[Usuario] = None) -> Ticket:
        if ticket.status in STATUS_ENCERRADOS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Não é possível atribuir técnico a um ticket '{ticket.status}'."
            )
        tecnico = tecnico_service.get_ativo_or_404(db, tecnico_id)
        anterior = ticket.tecnico_responsavel_id
        ticket.tecnico_responsavel_id = tecnico.id
        ticket.tecnico_responsavel = tecnico
        if ticket.ordem_servico:
            ticket.ordem_servico.tecnico_id = tecnico.id
            db.add(ticket.ordem_servico)
        db.add(ticket)

        notificacao_service.notificar(
            db,
            usuario_id=tecnico.usuario_id,
            titulo=f"Ticket {ticket.numero_ticket} atribuído a você",
            mensagem=ticket.titulo,
            tipo=TipoNotificacaoEnum.TICKET,
            link=f"/tickets/{ticket.id}",
        )
        audit_log_service.registrar(
            db,
            table_name="tickets",
            record_id=ticket.id,
            action=AcaoAuditoriaEnum.UPDATE,
            usuario_id=usuario.id if usuario else None,
            old_data={"tecnico_responsavel_id": anterior},
            new_data={"tecnico_responsavel_id": tecnico.id},
        )
        logger.info(f"Técnico '{tecnico.nome}' atribuído ao ticket {ticket.numero_ticket}.")
        return ticket

    def adicionar_anexo(self, db: Session, *, ticket: Ticket, caminho: str) -> Ticket:
        ticket.anexos = [*(ticket.anexos or []), caminho]
        db.add(ticket)
        return ticket

    def get_historico(self, db: Session, *, ticket_id: UUID) -> List[StatusHistorico]:
        statement = (
            select(StatusHistorico)
            .where(StatusHistorico.ticket_id == ticket_id)
            .order_by(StatusHistorico.created_at)
        )
        return list(db.execute(statement).scalars().all())

    def remove(self, db: Session, *, id: UUID, usuario: Optional[Usuario] = None) -> Ticket:
        ticket = self.get_or_404(db, id=id)
        if ticket.status not in STATUS_EXCLUIVEIS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Apenas tickets abertos, rejeitados ou cancelados podem ser excluídos (status atual: '{ticket.status}')."
            )
        if ticket.ordem_servico:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"O ticket {ticket.numero_ticket} possui ordem de serviço e não pode ser excluído."
            )
        audit_log_service.registrar(
            db,
            table_name="tickets",
            record_id=ticket.id,
            action=AcaoAuditoriaEnum.DELETE,
            usuario_id=usuario.id if usuario else None,
            old_data={"numero_ticket": ticket.numero_ticket, "titulo": ticket.titulo, "status": ticket.status},
        )
        db.delete(ticket)
        logger.warning(f"Ticket {ticket.numero_ticket} preparado para exclusão.")
        return ticket

ticket_service = TicketService(Ticket)
