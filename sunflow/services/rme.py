import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core import storage
from sunflow.core.datas import agora_utc
from sunflow.models.insumo import Insumo
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.rme_relatorio import RMERelatorio
from sunflow.models.usuario import Usuario
from sunflow.schemas.enums import (
    RMEStatusEnum, RMEStatusAprovacaoEnum, TicketStatusEnum, TipoMovimentacaoEnum,
    TipoNotificacaoEnum, AcaoAuditoriaEnum, MomentoFotoEnum,
)
from sunflow.schemas.insumo import MovimentacaoCreate
from sunflow.schemas.rme import RMECreate, RMEUpdate, RMEAprovar, RMERejeitar
from .base_service import BaseService
from .audit_log import audit_log_service
from .insumo import insumo_service
from .notificacao import notificacao_service
from .pdf import gerar_pdf_rme, nome_arquivo_rme
from .rme_checklist import rme_checklist_service
from .ticket import ticket_service

logger = logging.getLogger(__name__)

STATUS_TICKET_RME = {TicketStatusEnum.EM_EXECUCAO.value, TicketStatusEnum.AGUARDANDO_RME.value}

DIAS_SEMANA = ["Segunda-feira", "Terça-feira", "Quarta-feira", "Quinta-feira", "Sexta-feira", "Sábado", "Domingo"]

# gravados no JSON já serializados (datas das assinaturas, decimais dos materiais)
CAMPOS_JSON = {"materiais_utilizados", "medicoes_eletricas", "assinaturas"}


def dia_da_semana(data: date) -> str:
    return DIAS_SEMANA[data.weekday()]


class RMEService(BaseService[RMERelatorio, RMECreate, RMEUpdate]):
    """
    Relatórios de manutenção executada: preenchimento pelo técnico e
    aprovação pela área técnica. A aprovação conclui o ticket e baixa do
    estoque os materiais ligados a insumos.
    """
    label = "RME"

    def get_by_os(self, db: Session, *, ordem_servico_id: UUID) -> Optional[RMERelatorio]:
        statement = select(self.model).where(self.model.ordem_servico_id == ordem_servico_id)
        return db.execute(statement).scalar_one_or_none()

    def get_multi_filtered(
        self,
        db: Session,
        *,
        status_aprovacao: Optional[str] = None,
        tecnico_id: Optional[UUID] = None,
        ticket_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[RMERelatorio]:
        statement = select(self.model)
        if status_aprovacao:
            statement = statement.where(self.model.status_aprovacao == status_aprovacao)
        if tecnico_id:
            statement = statement.where(self.model.tecnico_id == tecnico_id)
        if ticket_id:
            statement = statement.where(self.model.ticket_id == ticket_id)
        statement = statement.order_by(self.model.created_at.desc()).offset(skip).limit(limit)
        return list(db.execute(statement).scalars().all())

    def _enviar_para_aprovacao(self, db: Session, *, rme: RMERelatorio, usuario: Optional[Usuario]):
        ticket = rme.ticket
        if ticket.status == TicketStatusEnum.EM_EXECUCAO.value:
            ticket_service.alterar_status(
                db, ticket=ticket, novo_status=TicketStatusEnum.AGUARDANDO_RME, usuario=usuario,
                observacoes="RME concluído pelo técnico"
            )

    def create(self, db: Session, *, obj_in: RMECreate, usuario: Optional[Usuario] = None) -> RMERelatorio:
        """NÃO faz db.commit()."""
        ticket = ticket_service.get_or_404(db, id=obj_in.ticket_id)
        if ticket.status not in STATUS_TICKET_RME and not ticket.can_create_rme:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"O ticket {ticket.numero_ticket} não está em execução (status atual: '{ticket.status}')."
            )
        os = db.get(OrdemServico, obj_in.ordem_servico_id)
        if not os:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Ordem de serviço com ID {obj_in.ordem_servico_id} não encontrada.")
        if os.ticket_id != ticket.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"A OS {os.numero_os} não pertence ao ticket {ticket.numero_ticket}."
            )
        if self.get_by_os(db, ordem_servico_id=os.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"A OS {os.numero_os} já possui RME.")

        dados = obj_in.model_dump(exclude=CAMPOS_JSON)
        dados.update(obj_in.model_dump(mode="json", include=CAMPOS_JSON))
        dados["tecnico_id"] = obj_in.tecnico_id or os.tecnico_id
        dados["dia_semana"] = obj_in.dia_semana or dia_da_semana(obj_in.data_execucao)
        if not obj_in.nome_usina and ticket.cliente:
            dados["nome_usina"] = ticket.cliente.empresa
        dados["hora_inicio"] = obj_in.hora_inicio or os.hora_inicio
        dados["hora_fim"] = obj_in.hora_fim or os.hora_fim
        db_obj = self.model(
            **dados,
            fotos_antes=[],
            fotos_depois=[],
            anexos_tecnicos=[],
            status_aprovacao=RMEStatusAprovacaoEnum.PENDENTE.value,
            data_preenchimento=agora_utc(),
        )
        db_obj.ticket = ticket
        db_obj.ordem_servico = os
        db.add(db_obj)
        db.flush()
        rme_checklist_service.popular(db, rme=db_obj)

        if db_obj.status == RMEStatusEnum.CONCLUIDO.value:
            self._enviar_para_aprovacao(db, rme=db_obj, usuario=usuario)
        logger.info(f"RME preparado para a OS {os.numero_os} (ticket {ticket.numero_ticket}).")
        return db_obj

    def update(self, db: Session, *, db_obj: RMERelatorio, obj_in: RMEUpdate, usuario: Optional[Usuario] = None) -> RMERelatorio:
        if db_obj.status_aprovacao == RMEStatusAprovacaoEnum.APROVADO.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="RME aprovado não pode ser alterado.")

        dados = obj_in.model_dump(exclude_unset=True, exclude=CAMPOS_JSON)
        campos_json = obj_in.model_dump(mode="json", exclude_unset=True, include=CAMPOS_JSON)
        dados.update({k: v for k, v in campos_json.items() if v is not None})
        if obj_in.data_execucao and not obj_in.dia_semana:
            dados["dia_semana"] = dia_da_semana(obj_in.data_execucao)
        super().update(db, db_obj=db_obj, obj_in=dados)

        # correção de um RME rejeitado volta para a fila de aprovação
        if db_obj.status_aprovacao == RMEStatusAprovacaoEnum.REJEITADO.value:
            db_obj.status_aprovacao = RMEStatusAprovacaoEnum.PENDENTE.value
        if db_obj.status == RMEStatusEnum.CONCLUIDO.value:
            self._enviar_para_aprovacao(db, rme=db_obj, usuario=usuario)
        return db_obj

    def adicionar_fotos(self, db: Session, *, rme: RMERelatorio, caminhos: List[str], momento: MomentoFotoEnum) -> RMERelatorio:
        if rme.status_aprovacao == RMEStatusAprovacaoEnum.APROVADO.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="RME aprovado não pode ser alterado.")
        if MomentoFotoEnum(momento) == MomentoFotoEnum.ANTES:
            rme.fotos_antes = [*(rme.fotos_antes or []), *caminhos]
        else:
            rme.fotos_depois = [*(rme.fotos_depois or []), *caminhos]
        db.add(rme)
        return rme

    def _garantir_pendente(self, rme: RMERelatorio):
        if rme.status_aprovacao != RMEStatusAprovacaoEnum.PENDENTE.value:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"O RME já foi avaliado (status de aprovação: '{rme.status_aprovacao}')."
            )

    def _baixar_materiais(self, db: Session, *, rme: RMERelatorio, usuario: Usuario):
        for material in rme.materiais_utilizados or []:
            insumo_id = material.get("insumo_id")
            if not insumo_id:
                continue
            insumo = db.get(Insumo, UUID(str(insumo_id)))
            if not insumo:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Insumo '{material.get('nome')}' ({insumo_id}) não encontrado."
                )
            insumo_service.movimentar(
                db,
                insumo=insumo,
                obj_in=MovimentacaoCreate(
                    tipo=TipoMovimentacaoEnum.SAIDA,
                    quantidade=Decimal(str(material.get("quantidade", 0))),
                    motivo=f"Consumo no ticket {rme.ticket.numero_ticket}",
                ),
                responsavel_id=usuario.id,
                rme_id=rme.id,
            )

    def _notificar_tecnico(self, db: Session, *, rme: RMERelatorio, titulo: str, mensagem: str):
        if rme.tecnico:
            notificacao_service.notificar(
                db,
                usuario_id=rme.tecnico.usuario_id,
                titulo=titulo,
                mensagem=mensagem,
                tipo=TipoNotificacaoEnum.RME,
                link=f"/rme/{rme.id}",
            )

    def aprovar(
        self, db: Session, *, rme: RMERelatorio, obj_in: RMEAprovar, aprovador: Usuario, request: Optional[Request] = None
    ) -> RMERelatorio:
        """Aprova o RME, baixa o estoque e conclui o ticket. NÃO faz commit."""
        self._garantir_pendente(rme)
        rme.status_aprovacao = RMEStatusAprovacaoEnum.APROVADO.value
        rme.aprovado_por = aprovador.id
        rme.data_aprovacao = agora_utc()
        rme.observacoes_aprovacao = obj_in.observacoes
        db.add(rme)

        self._baixar_materiais(db, rme=rme, usuario=aprovador)
        ticket_service.alterar_status(
            db, ticket=rme.ticket, novo_status=TicketStatusEnum.CONCLUIDO, usuario=aprovador,
            observacoes="RME aprovado", request=request
        )
        self._notificar_tecnico(
            db, rme=rme,
            titulo=f"RME aprovado: {rme.ticket.numero_ticket}",
            mensagem=obj_in.observacoes or "Seu relatório foi aprovado.",
        )
        audit_log_service.registrar(
            db,
            table_name="rme_relatorios",
            record_id=rme.id,
            action=AcaoAuditoriaEnum.APPROVE,
            usuario_id=aprovador.id,
            old_data={"status_aprovacao": RMEStatusAprovacaoEnum.PENDENTE.value},
            new_data={"status_aprovacao": rme.status_aprovacao, "observacoes": obj_in.observacoes},
            request=request,
        )
        logger.info(f"RME {rme.id} aprovado por '{aprovador.nome_usuario}'.")
        return rme

    def rejeitar(
        self, db: Session, *, rme: RMERelatorio, obj_in: RMERejeitar, aprovador: Usuario, request: Optional[Request] = None
    ) -> RMERelatorio:
        """Rejeita o RME e devolve o ticket para execução. NÃO faz commit."""
        self._garantir_pendente(rme)
        rme.status_aprovacao = RMEStatusAprovacaoEnum.REJEITADO.value
        rme.aprovado_por = aprovador.id
        rme.data_aprovacao = agora_utc()
        rme.observacoes_aprovacao = obj_in.motivo
        db.add(rme)

        if rme.ticket.status != TicketStatusEnum.EM_EXECUCAO.value:
            ticket_service.alterar_status(
                db, ticket=rme.ticket, novo_status=TicketStatusEnum.EM_EXECUCAO, usuario=aprovador,
                observacoes=f"RME rejeitado: {obj_in.motivo}", request=request
            )
        self._notificar_tecnico(
            db, rme=rme,
            titulo=f"RME rejeitado: {rme.ticket.numero_ticket}",
            mensagem=obj_in.motivo,
        )
        audit_log_service.registrar(
            db,
            table_name="rme_relatorios",
            record_id=rme.id,
            action=AcaoAuditoriaEnum.REJECT,
            usuario_id=aprovador.id,
            old_data={"status_aprovacao": RMEStatusAprovacaoEnum.PENDENTE.value},
            new_data={"status_aprovacao": rme.status_aprovacao, "motivo": obj_in.motivo},
            request=request,
        )
        logger.info(f"RME {rme.id} rejeitado por '{aprovador.nome_usuario}': {obj_in.motivo}")
        return rme

    async def salvar_pdf(self, db: Session, *, rme: RMERelatorio) -> str:
        conteudo = gerar_pdf_rme(rme)
        caminho = await storage.save_generated_file(conteudo, nome_arquivo_rme(rme), subdir="rme")
        rme.pdf_url = caminho
        db.add(rme)
        return caminho

    async def obter_pdf(self, db: Session, *, rme: RMERelatorio) -> bytes:
        """O PDF do RME é sempre regerado, pois o relatório muda até a aprovação."""
        caminho = await self.salvar_pdf(db, rme=rme)
        return await storage.read_file(caminho)

rme_service = RMEService(RMERelatorio)
