import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy import select, func as sql_func

from sunflow.core.datas import hoje_local
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.rme_relatorio import RMERelatorio
from sunflow.models.ticket import Ticket
from sunflow.schemas.dashboard import DashboardData
from sunflow.schemas.enums import RMEStatusAprovacaoEnum, TicketStatusEnum
from sunflow.schemas.ticket import TicketSimple

from .insumo import insumo_service
from .ticket import ticket_service, STATUS_ENCERRADOS

logger = logging.getLogger(__name__)

class DashboardService:
    def get_summary(self, db: Session, *, hoje: Optional[date] = None) -> DashboardData:
        logger.info("Obtendo resumo de dados para o painel.")
        hoje = hoje or hoje_local()

        por_status = {s.value: 0 for s in TicketStatusEnum}
        stmt_status = select(Ticket.status, sql_func.count(Ticket.id)).group_by(Ticket.status)
        for status_ticket, quantidade in db.execute(stmt_status).all():
            por_status[status_ticket] = quantidade
        logger.debug(f"Tickets por status: {por_status}")

        stmt_prioridade = (
            select(Ticket.prioridade, sql_func.count(Ticket.id))
            .where(Ticket.status.not_in(STATUS_ENCERRADOS))
            .group_by(Ticket.prioridade)
        )
        por_prioridade = {prioridade: quantidade for prioridade, quantidade in db.execute(stmt_prioridade).all()}

        tickets_abertos = sum(q for s, q in por_status.items() if s not in STATUS_ENCERRADOS)

        stmt_os_hoje = (
            select(sql_func.count(OrdemServico.id))
            .join(Ticket, Ticket.id == OrdemServico.ticket_id)
            .where(OrdemServico.data_programada == hoje, Ticket.status != TicketStatusEnum.CANCELADO.value)
        )
        os_agendadas_hoje = db.execute(stmt_os_hoje).scalar_one_or_none() or 0

        stmt_rme = select(sql_func.count(RMERelatorio.id)).where(
            RMERelatorio.status_aprovacao == RMEStatusAprovacaoEnum.PENDENTE.value
        )
        rme_pendentes = db.execute(stmt_rme).scalar_one_or_none() or 0

        insumos_em_alerta = len(insumo_service.get_alertas(db))
        atrasados = ticket_service.get_atrasados(db, hoje=hoje)

        dashboard_data = DashboardData(
            tickets_por_status=por_status,
            tickets_por_prioridade=por_prioridade,
            tickets_abertos=tickets_abertos,
            os_agendadas_hoje=os_agendadas_hoje,
            rme_pendentes_aprovacao=rme_pendentes,
            insumos_em_alerta=insumos_em_alerta,
            tickets_atrasados=[TicketSimple.model_validate(t) for t in atrasados],
        )
        logger.info("Resumo do painel gerado com sucesso.")
        return dashboard_data

dashboard_service = DashboardService()
