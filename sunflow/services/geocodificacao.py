"""
Geocodificação de endereços de tickets e clientes.

Ordem de consulta: cache global de endereços (válido por
GEOCODING_CACHE_DAYS), Mapbox quando há MAPBOX_ACCESS_TOKEN, Nominatim.
Falhas dos provedores nunca propagam; o resultado é None.
"""
import logging
import re
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx
from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core.config import settings
from sunflow.core.datas import agora_utc
from sunflow.models.cache_geocodificacao import CacheGeocodificacao
from sunflow.models.cliente import Cliente
from sunflow.models.ticket import Ticket
from sunflow.schemas.enums import TicketStatusEnum
from .rota import normalizar_coordenadas, coordenada_valida

logger = logging.getLogger(__name__)

LOTE_GEOCODIFICACAO = 10
PROVEDOR_MAPBOX = "mapbox"
PROVEDOR_NOMINATIM = "nominatim"

# detalhes de lote/quadra que o Mapbox não resolve bem
_PADROES_MAPBOX = [
    (re.compile(r"Q\.\s*\d+", re.IGNORECASE), ""),
    (re.compile(r"L\.\s*[\d-]+", re.IGNORECASE), ""),
    (re.compile(r"S/N", re.IGNORECASE), ""),
    (re.compile(r"ETAPA\s+[IVX]+", re.IGNORECASE), ""),
    (re.compile(r"\s*-\s*"), " "),
    (re.compile(r"(?:,\s*){2,}"), ", "),
    (re.compile(r"\s+"), " "),
]


def normalizar_endereco(endereco: str) -> str:
    return re.sub(r"\s+", " ", endereco.strip().lower())


def limpar_endereco_mapbox(endereco: str) -> str:
    limpo = endereco
    for padrao, substituto in _PADROES_MAPBOX:
        limpo = padrao.sub(substituto, limpo)
    limpo = limpo.strip(" ,")
    return limpo if len(limpo) >= 10 else endereco


def _resultado(lat: Any, lon: Any, formatado: Optional[str], provedor: str) -> Optional[Dict[str, Any]]:
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        return None
    if not coordenada_valida(lat, lon):
        return None
    lat, lon = normalizar_coordenadas(lat, lon)
    return {"latitude": lat, "longitude": lon, "endereco_formatado": formatado, "provedor": provedor}


def geocodificar_mapbox(endereco: str) -> Optional[Dict[str, Any]]:
    if not settings.MAPBOX_ACCESS_TOKEN:
        return None
    consulta = limpar_endereco_mapbox(endereco)
    url = f"{settings.MAPBOX_BASE_URL.rstrip('/')}/geocoding/v5/mapbox.places/{quote(consulta)}.json"
    params = {
        "access_token": settings.MAPBOX_ACCESS_TOKEN,
        "country": "BR",
        "limit": 1,
        "language": "pt-BR",
        "types": "address,place,locality",
    }
    try:
        with httpx.Client(timeout=settings.ROUTING_TIMEOUT_SECONDS) as client:
            response = client.get(url, params=params)
            response.raise_for_status()
            features = response.json().get("features") or []
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Falha no Mapbox ao geocodificar '{endereco}': {e}")
        return None

    if not features:
        logger.info(f"Endereço não encontrado pelo Mapbox: '{consulta}'")
        return None
    centro = features[0].get("center") or []
    if len(centro) != 2:
        logger.warning(f"Resposta inesperada do Mapbox para '{endereco}': {features[0]}")
        return None
    # o Mapbox devolve [longitude, latitude]
    return _resultado(centro[1], centro[0], features[0].get("place_name"), PROVEDOR_MAPBOX)


def geocodificar_nominatim(endereco: str) -> Optional[Dict[str, Any]]:
    params = {"format": "json", "limit": 1, "countrycodes": "br", "q": endereco}
    try:
        with httpx.Client(timeout=settings.ROUTING_TIMEOUT_SECONDS) as client:
            response = client.get(
                f"{settings.NOMINATIM_BASE_URL.rstrip('/')}/search",
                params=params,
                headers={"User-Agent": settings.NOMINATIM_USER_AGENT},
            )
            response.raise_for_status()
            resultados = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Falha na geocodificação de '{endereco}': {e}")
        return None

    if not resultados:
        logger.info(f"Endereço não encontrado pelo geocodificador: '{endereco}'")
        return None
    primeiro = resultados[0]
    if not isinstance(primeiro, dict) or "lat" not in primeiro or "lon" not in primeiro:
        logger.warning(f"Resposta inesperada do geocodificador para '{endereco}': {primeiro}")
        return None
    return _resultado(primeiro["lat"], primeiro["lon"], primeiro.get("display_name"), PROVEDOR_NOMINATIM)


def geocodificar_endereco(endereco: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Consulta os provedores externos e devolve
    {latitude, longitude, endereco_formatado, provedor}, ou None quando o
    endereço não é encontrado ou todos falham.
    """
    if not endereco or not endereco.strip():
        return None
    endereco = endereco.strip()
    return geocodificar_mapbox(endereco) or geocodificar_nominatim(endereco)


def buscar_cache(db: Session, endereco: str) -> Optional[CacheGeocodificacao]:
    limite = agora_utc() - timedelta(days=settings.GEOCODING_CACHE_DAYS)
    statement = select(CacheGeocodificacao).where(
        CacheGeocodificacao.endereco_normalizado == normalizar_endereco(endereco),
        CacheGeocodificacao.cached_at >= limite,
    )
    return db.execute(statement).scalar_one_or_none()


def salvar_cache(db: Session, endereco: str, resultado: Dict[str, Any]) -> CacheGeocodificacao:
    """Insere ou renova a entrada do endereço. NÃO faz commit."""
    chave = normalizar_endereco(endereco)
    entrada = db.execute(
        select(CacheGeocodificacao).where(CacheGeocodificacao.endereco_normalizado == chave)
    ).scalar_one_or_none()
    if entrada is None:
        entrada = CacheGeocodificacao(endereco_normalizado=chave)
    entrada.endereco_original = endereco.strip()
    entrada.latitude = resultado["latitude"]
    entrada.longitude = resultado["longitude"]
    entrada.endereco_formatado = resultado.get("endereco_formatado")
    entrada.provedor = resultado["provedor"]
    entrada.cached_at = agora_utc()
    db.add(entrada)
    db.flush()
    return entrada


def geocodificar_com_cache(db: Session, endereco: Optional[str], forcar: bool = False) -> Optional[Tuple[float, float]]:
    if not endereco or not endereco.strip():
        return None
    if not forcar:
        entrada = buscar_cache(db, endereco)
        if entrada is not None:
            logger.debug(f"Cache de geocodificação usado para '{endereco}'")
            return entrada.latitude, entrada.longitude

    resultado = geocodificar_endereco(endereco)
    if not resultado:
        return None
    salvar_cache(db, endereco, resultado)
    return resultado["latitude"], resultado["longitude"]


def endereco_cliente(cliente: Optional[Cliente]) -> Optional[str]:
    if not cliente:
        return None
    partes = [cliente.endereco, cliente.cidade, cliente.estado, cliente.cep]
    texto = ", ".join(p for p in partes if p)
    return texto or None


def endereco_ticket(ticket: Ticket) -> Optional[str]:
    return ticket.endereco_servico or endereco_cliente(ticket.cliente)


def geocodificar_ticket(db: Session, ticket: Ticket) -> bool:
    """Atualiza as coordenadas do ticket. NÃO faz commit."""
    coordenadas = geocodificar_com_cache(db, endereco_ticket(ticket))
    if not coordenadas:
        return False
    ticket.latitude, ticket.longitude = coordenadas
    ticket.geocoded_at = agora_utc()
    db.add(ticket)
    logger.info(f"Ticket {ticket.numero_ticket} geocodificado: {coordenadas}")
    return True


def geocodificar_cliente(db: Session, cliente: Cliente) -> bool:
    coordenadas = geocodificar_com_cache(db, endereco_cliente(cliente))
    if not coordenadas:
        return False
    cliente.latitude, cliente.longitude = coordenadas
    cliente.geocoded_at = agora_utc()
    db.add(cliente)
    logger.info(f"Cliente '{cliente.empresa}' geocodificado: {coordenadas}")
    return True


def tickets_sem_coordenadas(db: Session, limite: int = LOTE_GEOCODIFICACAO) -> List[Ticket]:
    encerrados = [TicketStatusEnum.CONCLUIDO.value, TicketStatusEnum.CANCELADO.value]
    statement = (
        select(Ticket)
        .where(Ticket.latitude.is_(None), Ticket.status.not_in(encerrados))
        .order_by(Ticket.created_at)
        .limit(limite)
    )
    return list(db.execute(statement).scalars().all())


def geocodificar_pendentes(db: Session, limite: int = LOTE_GEOCODIFICACAO) -> dict:
    """Geocodifica um lote de tickets abertos ainda sem coordenadas. NÃO faz commit."""
    tickets = tickets_sem_coordenadas(db, limite)
    sucesso = sum(1 for ticket in tickets if geocodificar_ticket(db, ticket))
    resultado = {"total": len(tickets), "geocodificados": sucesso, "falhas": len(tickets) - sucesso}
    logger.info(f"Geocodificação em lote: {resultado}")
    return resultado
