import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime, date

from pydantic import BaseModel, Field, ConfigDict

from .enums import MetodoOtimizacaoEnum


class RotaOtimizarRequest(BaseModel):
    tecnico_id: uuid.UUID
    data: date
    ticket_ids: Optional[List[uuid.UUID]] = Field(None, description="Padrão: tickets das OS do técnico na data")
    provedor: Optional[MetodoOtimizacaoEnum] = Field(
        None, description="Padrão: Mapbox, depois OSRM, depois local. 'local' ignora os provedores externos"
    )

class ParadaRota(BaseModel):
    ordem: int
    ticket_id: uuid.UUID
    numero_ticket: Optional[str] = None
    titulo: Optional[str] = None
    prioridade: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    endereco: Optional[str] = None

class RotaOtimizada(BaseModel):
    id: uuid.UUID
    tecnico_id: uuid.UUID
    data_rota: date
    geometry: Optional[Dict[str, Any]] = None
    optimization_method: MetodoOtimizacaoEnum
    distance_km: float
    duration_minutes: float
    waypoints_order: List[Any] = Field(default_factory=list)
    ticket_ids: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ResultadoRota(BaseModel):
    rota: RotaOtimizada
    paradas: List[ParadaRota]
    distancia_total: str
    tempo_total: str
