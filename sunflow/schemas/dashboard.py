from typing import List, Dict
from pydantic import BaseModel, Field

from .ticket import TicketSimple

# Principal do painel operacional
class DashboardData(BaseModel):
    tickets_por_status: Dict[str, int] = Field(..., description="Quantidade de tickets por status")
    tickets_por_prioridade: Dict[str, int] = Field(..., description="Quantidade de tickets por prioridade")
    tickets_abertos: int = Field(..., ge=0, description="Tickets que ainda não foram concluídos nem cancelados")
    os_agendadas_hoje: int = Field(..., ge=0)
    rme_pendentes_aprovacao: int = Field(..., ge=0)
    insumos_em_alerta: int = Field(..., ge=0, description="Insumos com nível baixo ou crítico")
    tickets_atrasados: List[TicketSimple] = Field(default_factory=list, description="Vencidos e não concluídos/cancelados")
