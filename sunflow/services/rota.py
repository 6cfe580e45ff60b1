"""
Otimização de rotas dos técnicos.

O algoritmo local agrupa as paradas por data, ordena por prioridade e aplica
o vizinho mais próximo (distância haversine). Os provedores externos são
tentados em cadeia: Mapbox (quando há token), depois o serviço 'trip' do
OSRM; se nenhum responder a rota sai do algoritmo local.
"""
import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

import httpx
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core.config import settings
from sunflow.models.ordem_servico import OrdemServico
from sunflow.models.rota_otimizada import RotaOtimizada
from sunflow.models.ticket import Ticket
from sunflow.schemas.enums import MetodoOtimizacaoEnum, PrioridadeEnum
from sunflow.schemas.rota import ParadaRota

logger = logging.getLogger(__name__)

RAIO_TERRA_KM = 6371.0
VELOCIDADE_MEDIA_KMH = 30
MINUTOS_POR_PARADA = 15
MAX_WAYPOINTS_OSRM = 100
MAX_WAYPOINTS_MAPBOX = 25
MAX_WAYPOINTS_MAPBOX_OTIMIZACAO = 12
SEM_DATA = "sem_data"

PESO_PRIORIDADE = {
    PrioridadeEnum.CRITICA.value: 4,
    PrioridadeEnum.ALTA.value: 3,
    PrioridadeEnum.MEDIA.value: 2,
    PrioridadeEnum.BAIXA.value: 1,
}

OSRM_SERVIDORES_EXTRAS = ["https://routing.openstreetmap.de/routed-car"]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return RAIO_TERRA_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def coordenada_valida(latitude: Any, longitude: Any) -> bool:
    if latitude is None or longitude is None:
        return False
    try:
        lat, lon = float(latitude), float(longitude)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return False
    return not (lat == 0 and lon == 0)


def _dentro_do_brasil(lat: float, lon: float) -> bool:
    return -34 <= lat <= 6 and -74 <= lon <= -34


def normalizar_coordenadas(latitude: Any, longitude: Any) -> Tuple[float, float]:
    """Corrige pares gravados invertidos (lon, lat) para pontos no Brasil."""
    lat, lon = float(latitude), float(longitude)
    if not _dentro_do_brasil(lat, lon) and _dentro_do_brasil(lon, lat):
        return lon, lat
    return lat, lon


def _tem_coordenadas(parada: Dict[str, Any]) -> bool:
    return coordenada_valida(parada.get("latitude"), parada.get("longitude"))


def _chave_data(parada: Dict[str, Any]) -> str:
    valor = parada.get("data_programada")
    if not valor:
        return SEM_DATA
    if isinstance(valor, date):
        return valor.isoformat()
    return str(valor)[:10]


def _numerar(paradas: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{**p, "ordem": i + 1} for i, p in enumerate(paradas)]


def _distancia(a: Dict[str, Any], b: Dict[str, Any]) -> float:
    return haversine_km(a["latitude"], a["longitude"], b["latitude"], b["longitude"])


def _vizinho_mais_proximo(restantes: List[Dict[str, Any]], origem: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """
    Sem origem o passeio começa pelo primeiro elemento; com origem (ponto
    que não faz parte da lista) começa pelo mais próximo dela.
    """
    if not restantes:
        return []
    pendentes = list(restantes)
    if origem is None:
        origem = pendentes.pop(0)
        ordenadas = [origem]
    else:
        ordenadas = []
    atual = origem
    while pendentes:
        proximo = min(pendentes, key=lambda p: _distancia(atual, p))
        pendentes.remove(proximo)
        ordenadas.append(proximo)
        atual = proximo
    return ordenadas


def ponto_inicial_empresa() -> Optional[Dict[str, Any]]:
    if coordenada_valida(settings.EMPRESA_LATITUDE, settings.EMPRESA_LONGITUDE):
        return {"latitude": settings.EMPRESA_LATITUDE, "longitude": settings.EMPRESA_LONGITUDE}
    return None


def otimizar_rota_local(paradas: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Ordena as paradas (dicts com ticket_id, prioridade, latitude, longitude,
    data_programada) e devolve cópias numeradas em 'ordem' a partir de 1.

    Dentro de cada data os críticos vêm primeiro; o restante começa pelo de
    maior prioridade e segue o vizinho mais próximo. Paradas sem coordenadas
    vão para o fim.
    """
    if len(paradas) <= 1:
        return _numerar(paradas)

    com_coord = [p for p in paradas if _tem_coordenadas(p)]
    sem_coord = [p for p in paradas if not _tem_coordenadas(p)]
    if not com_coord:
        return _numerar(paradas)

    grupos: Dict[str, List[Dict[str, Any]]] = {}
    for parada in com_coord:
        grupos.setdefault(_chave_data(parada), []).append(parada)

    ordenadas: List[Dict[str, Any]] = []
    for chave in sorted(grupos, key=lambda k: (k == SEM_DATA, k)):
        grupo = sorted(grupos[chave], key=lambda p: PESO_PRIORIDADE.get(p.get("prioridade"), 0), reverse=True)
        criticos = [p for p in grupo if p.get("prioridade") == PrioridadeEnum.CRITICA.value]
        demais = [p for p in grupo if p.get("prioridade") != PrioridadeEnum.CRITICA.value]
        ordenadas.extend(criticos)
        ordenadas.extend(_vizinho_mais_proximo(demais))

    return _numerar(ordenadas + sem_coord)


def formatar_distancia(km: float) -> str:
    return f"{km:.1f} km"


def formatar_duracao(minutos: float) -> str:
    minutos = max(minutos, 0)
    return f"{int(minutos // 60)}h {int(minutos % 60)}min"


def calcular_totais_rota(paradas: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Distância haversine entre paradas consecutivas com coordenadas; tempo a
    30 km/h com 15 min por parada, somado ao tempo estimado de cada serviço.
    """
    com_coord = [p for p in paradas if _tem_coordenadas(p)]
    if len(com_coord) < 2:
        return {"distancia_km": 0.0, "tempo_minutos": 0.0, "distancia": "0 km", "tempo": "0h 0min"}

    distancia = 0.0
    tempo = 0.0
    for atual, proxima in zip(com_coord, com_coord[1:]):
        trecho = _distancia(atual, proxima)
        distancia += trecho
        tempo += trecho / VELOCIDADE_MEDIA_KMH * 60 + MINUTOS_POR_PARADA

    tempo += sum(float(p.get("tempo_estimado") or 0) * 60 for p in paradas)
    return {
        "distancia_km": round(distancia, 2),
        "tempo_minutos": round(tempo, 1),
        "distancia": formatar_distancia(distancia),
        "tempo": formatar_duracao(tempo),
    }


# ===============================================================
# Provedores externos (Mapbox, OSRM)
# ===============================================================
def _pontos_da_viagem(
    paradas: Sequence[Dict[str, Any]], ponto_inicial: Optional[Dict[str, Any]]
) -> Tuple[List[Dict[str, Any]], int]:
    com_coord = [p for p in paradas if _tem_coordenadas(p)]
    if not com_coord:
        return [], 0
    pontos = ([ponto_inicial] if ponto_inicial else []) + com_coord
    return pontos, (1 if ponto_inicial else 0)


def _ordem_da_viagem(pontos: List[Dict[str, Any]], waypoints: List[Dict[str, Any]], deslocamento: int) -> List[Dict[str, Any]]:
    # waypoint_index = posição de cada ponto de entrada na viagem
    if len(waypoints) == len(pontos):
        posicoes = sorted(range(len(pontos)), key=lambda i: waypoints[i].get("waypoint_index", i))
    else:
        posicoes = list(range(len(pontos)))
    return [pontos[i] for i in posicoes if i >= deslocamento]


def _coordenadas_url(pontos: Sequence[Dict[str, Any]]) -> str:
    return ";".join(f"{p['longitude']},{p['latitude']}" for p in pontos)


def _consultar(url: str, params: Dict[str, Any], origem: str) -> Optional[Dict[str, Any]]:
    try:
        with httpx.Client(timeout=settings.ROUTING_TIMEOUT_SECONDS) as client:
            response = client.get(url, params=params, headers={"User-Agent": settings.NOMINATIM_USER_AGENT})
        if response.status_code != 200:
            logger.warning(f"{origem} retornou HTTP {response.status_code}")
            return None
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Falha ao consultar {origem}: {e}")
        return None
    if data.get("code") != "Ok":
        logger.warning(f"{origem} retornou código {data.get('code')}: {data.get('message')}")
        return None
    return data


def otimizar_rota_mapbox(paradas: Sequence[Dict[str, Any]], ponto_inicial: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """
    Até 12 pontos usa a Optimization API do Mapbox, que reordena a viagem.
    Acima disso pré-ordena pelo vizinho mais próximo a partir do ponto
    inicial e só traça o caminho pela Directions API.

    Devolve None sem MAPBOX_ACCESS_TOKEN, com pontos insuficientes ou em
    qualquer falha; o chamador segue para o próximo provedor.
    """
    if not settings.MAPBOX_ACCESS_TOKEN:
        return None
    pontos, deslocamento = _pontos_da_viagem(paradas, ponto_inicial)
    if len(pontos) < 2:
        return None
    if len(pontos) > MAX_WAYPOINTS_MAPBOX:
        logger.warning(f"Mapbox ignorado: {len(pontos)} pontos excedem o limite de {MAX_WAYPOINTS_MAPBOX}.")
        return None

    base = settings.MAPBOX_BASE_URL.rstrip("/")
    params = {
        "access_token": settings.MAPBOX_ACCESS_TOKEN,
        "geometries": "geojson",
        "overview": "full",
        "steps": "false",
    }
    usar_otimizacao = len(pontos) <= MAX_WAYPOINTS_MAPBOX_OTIMIZACAO
    if usar_otimizacao:
        url = f"{base}/optimized-trips/v1/mapbox/driving/{_coordenadas_url(pontos)}"
        params["source"] = "first"
    else:
        if ponto_inicial:
            pontos = [ponto_inicial] + _vizinho_mais_proximo(pontos[1:], origem=ponto_inicial)
        else:
            pontos = _vizinho_mais_proximo(pontos)
        url = f"{base}/directions/v5/mapbox/driving/{_coordenadas_url(pontos)}"

    data = _consultar(url, params, "Mapbox")
    if data is None:
        return None
    rotas = data.get("trips") if usar_otimizacao else data.get("routes")
    if not rotas:
        logger.warning("Mapbox não encontrou rota para os pontos informados.")
        return None

    rota = rotas[0]
    if usar_otimizacao:
        ordenadas = _ordem_da_viagem(pontos, data.get("waypoints") or [], deslocamento)
    else:
        ordenadas = pontos[deslocamento:]

    logger.info(f"Rota otimizada pelo Mapbox: {len(ordenadas)} paradas, {rota.get('distance')} m")
    return {
        "paradas": ordenadas,
        "distancia_km": round(float(rota.get("distance", 0)) / 1000, 2),
        "tempo_minutos": round(float(rota.get("duration", 0)) / 60, 1),
        "geometry": rota.get("geometry"),
        "provedor": MetodoOtimizacaoEnum.MAPBOX.value,
    }


def _servidores_osrm() -> List[str]:
    servidores = [settings.OSRM_BASE_URL.rstrip("/")]
    servidores += [s for s in OSRM_SERVIDORES_EXTRAS if s not in servidores]
    return servidores


def otimizar_rota_osrm(paradas: Sequence[Dict[str, Any]], ponto_inicial: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """
    Consulta o serviço 'trip' do OSRM. Devolve None quando não há pontos
    suficientes ou nenhum servidor responde; o chamador usa o algoritmo local.
    """
    pontos, deslocamento = _pontos_da_viagem(paradas, ponto_inicial)
    if len(pontos) < 2:
        return None
    if len(pontos) > MAX_WAYPOINTS_OSRM:
        logger.warning(f"OSRM ignorado: {len(pontos)} pontos excedem o limite de {MAX_WAYPOINTS_OSRM}.")
        return None

    coords = _coordenadas_url(pontos)
    params = {"source": "first", "roundtrip": "false", "overview": "full", "geometries": "geojson", "steps": "false"}

    for servidor in _servidores_osrm():
        data = _consultar(f"{servidor}/trip/v1/driving/{coords}", params, f"OSRM {servidor}")
        if data is None or not data.get("trips"):
            continue

        trip = data["trips"][0]
        ordenadas = _ordem_da_viagem(pontos, data.get("waypoints") or [], deslocamento)
        logger.info(f"Rota otimizada pelo OSRM ({servidor}): {len(ordenadas)} paradas, {trip.get('distance')} m")
        return {
            "paradas": ordenadas,
            "distancia_km": round(float(trip.get("distance", 0)) / 1000, 2),
            "tempo_minutos": round(float(trip.get("duration", 0)) / 60, 1),
            "geometry": trip.get("geometry"),
            "provedor": MetodoOtimizacaoEnum.OSRM.value,
            "servidor": servidor,
        }

    logger.warning("Nenhum servidor OSRM disponível; usando otimização local.")
    return None


# ===============================================================
# Serviço
# ===============================================================
class RotaService:
    model = RotaOtimizada

    def get_by_tecnico_data(self, db: Session, *, tecnico_id: UUID, data_rota: date) -> Optional[RotaOtimizada]:
        statement = select(self.model).where(self.model.tecnico_id == tecnico_id, self.model.data_rota == data_rota)
        return db.execute(statement).scalar_one_or_none()

    def _carregar_paradas(
        self, db: Session, *, tecnico_id: UUID, data_rota: date, ticket_ids: Optional[List[UUID]]
    ) -> List[Dict[str, Any]]:
        if ticket_ids:
            tickets = list(db.execute(select(Ticket).where(Ticket.id.in_(ticket_ids))).scalars().all())
            encontrados = {t.id for t in tickets}
            faltando = [str(t) for t in ticket_ids if t not in encontrados]
            if faltando:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Tickets não encontrados: {', '.join(faltando)}")
            # preserva a ordem recebida
            por_id = {t.id: t for t in tickets}
            tickets = [por_id[t] for t in ticket_ids]
        else:
            statement = (
                select(OrdemServico)
                .where(OrdemServico.tecnico_id == tecnico_id, OrdemServico.data_programada == data_rota)
                .order_by(OrdemServico.hora_inicio)
            )
            tickets = [os.ticket for os in db.execute(statement).scalars().all()]

        paradas = []
        for ticket in tickets:
            lat, lon = ticket.latitude, ticket.longitude
            if coordenada_valida(lat, lon):
                lat, lon = normalizar_coordenadas(lat, lon)
            os = ticket.ordem_servico
            paradas.append({
                "ticket_id": ticket.id,
                "numero_ticket": ticket.numero_ticket,
                "titulo": ticket.titulo,
                "prioridade": ticket.prioridade,
                "latitude": lat,
                "longitude": lon,
                "endereco": ticket.endereco_servico or (ticket.cliente.endereco if ticket.cliente else None),
                "data_programada": (os.data_programada if os and os.data_programada else ticket.data_vencimento),
                "tempo_estimado": ticket.tempo_estimado,
            })
        return paradas

    def otimizar(
        self,
        db: Session,
        *,
        tecnico_id: UUID,
        data_rota: date,
        ticket_ids: Optional[List[UUID]] = None,
        provedor: Optional[MetodoOtimizacaoEnum] = None,
    ) -> Tuple[RotaOtimizada, List[ParadaRota], Dict[str, Any]]:
        """
        Calcula e grava a rota do técnico no dia (uma por técnico/data).
        NÃO faz db.commit().
        """
        paradas = self._carregar_paradas(db, tecnico_id=tecnico_id, data_rota=data_rota, ticket_ids=ticket_ids)
        if not paradas:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Nenhum ticket para otimizar: o técnico não tem ordens de serviço nesta data."
            )

        inicio = ponto_inicial_empresa()
        resultado_externo = None
        if provedor in (None, MetodoOtimizacaoEnum.MAPBOX):
            resultado_externo = otimizar_rota_mapbox(paradas, inicio)
        if resultado_externo is None and provedor in (None, MetodoOtimizacaoEnum.OSRM):
            resultado_externo = otimizar_rota_osrm(paradas, inicio)

        if resultado_externo:
            sem_coord = [p for p in paradas if not _tem_coordenadas(p)]
            ordenadas = _numerar(resultado_externo["paradas"] + sem_coord)
            metodo = MetodoOtimizacaoEnum(resultado_externo["provedor"])
            distancia_km = resultado_externo["distancia_km"]
            tempo_minutos = resultado_externo["tempo_minutos"]
            geometry = resultado_externo["geometry"]
        else:
            ordenadas = otimizar_rota_local(paradas)
            totais_locais = calcular_totais_rota(ordenadas)
            metodo = MetodoOtimizacaoEnum.LOCAL
            distancia_km = totais_locais["distancia_km"]
            tempo_minutos = totais_locais["tempo_minutos"]
            geometry = None

        totais = {
            "distancia": formatar_distancia(distancia_km),
            "tempo": formatar_duracao(tempo_minutos),
        }

        rota = self.get_by_tecnico_data(db, tecnico_id=tecnico_id, data_rota=data_rota)
        if rota is None:
            rota = RotaOtimizada(tecnico_id=tecnico_id, data_rota=data_rota)
        rota.geometry = geometry
        rota.optimization_method = metodo.value
        rota.distance_km = distancia_km
        rota.duration_minutes = tempo_minutos
        rota.waypoints_order = [
            {"ordem": p["ordem"], "ticket_id": str(p["ticket_id"]), "latitude": p.get("latitude"), "longitude": p.get("longitude")}
            for p in ordenadas
        ]
        rota.ticket_ids = [str(p["ticket_id"]) for p in ordenadas]
        db.add(rota)
        db.flush()

        logger.info(
            f"Rota do técnico {tecnico_id} em {data_rota}: {len(ordenadas)} paradas via {metodo.value} "
            f"({totais['distancia']}, {totais['tempo']})"
        )
        resposta = [
            ParadaRota(**{k: v for k, v in p.items() if k in ParadaRota.model_fields})
            for p in ordenadas
        ]
        return rota, resposta, totais

rota_service = RotaService()
