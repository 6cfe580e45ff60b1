import uuid
from datetime import date
from unittest import mock

import httpx
import pytest

from sunflow.core.config import settings
from sunflow.services.rota import (
    haversine_km, coordenada_valida, normalizar_coordenadas, otimizar_rota_local,
    calcular_totais_rota, formatar_distancia, formatar_duracao,
    otimizar_rota_mapbox, otimizar_rota_osrm,
)


def _parada(prioridade="media", lat=None, lon=None, data_programada=None, **extra):
    return {
        "ticket_id": uuid.uuid4(),
        "prioridade": prioridade,
        "latitude": lat,
        "longitude": lon,
        "data_programada": data_programada,
        **extra,
    }


def test_haversine_goiania_anapolis():
    distancia = haversine_km(-16.6869, -49.2648, -16.3281, -48.9534)
    assert distancia == pytest.approx(52.0, abs=2.0)
    assert haversine_km(-16.0, -49.0, -16.0, -49.0) == 0


@pytest.mark.parametrize("lat, lon", [
    (None, -49.2),
    (-16.7, None),
    (float("nan"), -49.2),
    (91, -49.2),
    (-16.7, 181),
    (0, 0),
    ("abc", "-49"),
])
def test_coordenadas_invalidas(lat, lon):
    assert coordenada_valida(lat, lon) is False


def test_coordenadas_validas():
    assert coordenada_valida(-16.7, -49.2)
    assert coordenada_valida("-16.7", "-49.2")
    assert coordenada_valida(0, -49.2)


def test_normalizar_coordenadas_invertidas():
    assert normalizar_coordenadas(-49.26, -16.68) == (-16.68, -49.26)
    assert normalizar_coordenadas(-16.68, -49.26) == (-16.68, -49.26)
    # fora do Brasil nos dois sentidos: mantém
    assert normalizar_coordenadas(48.85, 2.35) == (48.85, 2.35)


class TestOtimizacaoLocal:
    def test_lista_vazia_e_unitaria(self):
        assert otimizar_rota_local([]) == []
        unica = _parada(lat=-16.7, lon=-49.3)
        assert otimizar_rota_local([unica]) == [{**unica, "ordem": 1}]

    def test_nao_altera_as_paradas_recebidas(self):
        paradas = [_parada(lat=-16.7, lon=-49.3), _parada(lat=-16.3, lon=-48.9)]
        otimizar_rota_local(paradas)
        assert all("ordem" not in p for p in paradas)

    def test_criticos_primeiro_depois_vizinho_mais_proximo(self):
        longe = _parada(lat=-17.8, lon=-50.9, nome="Rio Verde")
        perto = _parada(lat=-16.75, lon=-49.35, nome="Aparecida")
        vizinho_de_rio_verde = _parada(lat=-17.7, lon=-50.8, nome="Santo Antônio")
        critico = _parada("critica", lat=-16.68, lon=-49.26, nome="Goiânia")
        ordenadas = otimizar_rota_local([longe, perto, vizinho_de_rio_verde, critico])
        # o passeio começa pelo primeiro não crítico, não pelo crítico
        assert [p["nome"] for p in ordenadas] == ["Goiânia", "Rio Verde", "Santo Antônio", "Aparecida"]
        assert [p["ordem"] for p in ordenadas] == [1, 2, 3, 4]

    def test_alta_prioridade_antes_de_baixa_proxima_ao_critico(self):
        critico = _parada("critica", lat=-16.68, lon=-49.26, nome="C")
        alta_longe = _parada("alta", lat=-17.8, lon=-50.9, nome="A")
        baixa_perto = _parada("baixa", lat=-16.69, lon=-49.27, nome="B")
        ordenadas = otimizar_rota_local([baixa_perto, alta_longe, critico])
        assert [p["nome"] for p in ordenadas] == ["C", "A", "B"]

    def test_sem_coordenadas_no_fim(self):
        sem = _parada("critica", nome="Sem endereço")
        a = _parada(lat=-16.7, lon=-49.3, nome="A")
        b = _parada(lat=-16.3, lon=-48.9, nome="B")
        ordenadas = otimizar_rota_local([sem, a, b])
        assert ordenadas[-1]["nome"] == "Sem endereço"
        assert ordenadas[-1]["ordem"] == 3

    def test_todas_sem_coordenadas_mantem_ordem(self):
        paradas = [_parada(nome="1"), _parada(nome="2")]
        assert [p["nome"] for p in otimizar_rota_local(paradas)] == ["1", "2"]

    def test_agrupa_por_data(self):
        amanha = _parada("critica", lat=-16.7, lon=-49.3, data_programada=date(2026, 3, 11), nome="dia 11")
        hoje = _parada(lat=-16.3, lon=-48.9, data_programada=date(2026, 3, 10), nome="dia 10")
        sem_data = _parada(lat=-16.5, lon=-49.0, nome="sem data")
        ordenadas = otimizar_rota_local([sem_data, amanha, hoje])
        assert [p["nome"] for p in ordenadas] == ["dia 10", "dia 11", "sem data"]

    def test_mesma_prioridade_comeca_pelo_primeiro(self):
        anapolis = _parada(lat=-16.33, lon=-48.95, nome="Anápolis")
        goiania = _parada(lat=-16.70, lon=-49.30, nome="Goiânia")
        vizinho = _parada(lat=-16.35, lon=-48.97, nome="Distrito Agroindustrial")
        ordenadas = otimizar_rota_local([anapolis, goiania, vizinho])
        assert [p["nome"] for p in ordenadas] == ["Anápolis", "Distrito Agroindustrial", "Goiânia"]


def _resposta_http(corpo: dict, status_code: int = 200) -> mock.MagicMock:
    resposta = mock.MagicMock(status_code=status_code)
    resposta.json.return_value = corpo
    return resposta


class TestProvedoresExternos:
    EMPRESA = {"latitude": -16.6869, "longitude": -49.2648}

    def test_mapbox_sem_token_nao_consulta(self):
        with mock.patch.object(settings, "MAPBOX_ACCESS_TOKEN", None), \
                mock.patch("sunflow.services.rota.httpx.Client") as client_cls:
            assert otimizar_rota_mapbox([_parada(lat=-16.7, lon=-49.3)], self.EMPRESA) is None
        client_cls.assert_not_called()

    def test_mapbox_reordena_pela_viagem(self):
        a = _parada(lat=-16.33, lon=-48.95, nome="A")
        b = _parada(lat=-16.70, lon=-49.30, nome="B")
        corpo = {
            "code": "Ok",
            "trips": [{"distance": 61234.0, "duration": 3900.0, "geometry": {"type": "LineString", "coordinates": []}}],
            # posição na viagem de cada ponto de entrada: empresa, A, B
            "waypoints": [{"waypoint_index": 0}, {"waypoint_index": 2}, {"waypoint_index": 1}],
        }
        with mock.patch.object(settings, "MAPBOX_ACCESS_TOKEN", "pk.teste"), \
                mock.patch("sunflow.services.rota.httpx.Client") as client_cls:
            http = client_cls.return_value.__enter__.return_value
            http.get.return_value = _resposta_http(corpo)
            resultado = otimizar_rota_mapbox([a, b], self.EMPRESA)

        url = http.get.call_args.args[0]
        assert "/optimized-trips/v1/mapbox/driving/-49.2648,-16.6869;-48.95,-16.33;-49.3,-16.7" in url
        assert http.get.call_args.kwargs["params"]["source"] == "first"
        assert [p["nome"] for p in resultado["paradas"]] == ["B", "A"]
        assert resultado["provedor"] == "mapbox"
        assert resultado["distancia_km"] == 61.23
        assert resultado["tempo_minutos"] == 65.0

    def test_mapbox_acima_de_doze_pontos_usa_directions(self):
        paradas = [_parada(lat=-16.0 - i * 0.1, lon=-49.0, nome=str(i)) for i in range(12, 0, -1)]
        corpo = {"code": "Ok", "routes": [{"distance": 1000.0, "duration": 600.0, "geometry": None}]}
        with mock.patch.object(settings, "MAPBOX_ACCESS_TOKEN", "pk.teste"), \
                mock.patch("sunflow.services.rota.httpx.Client") as client_cls:
            http = client_cls.return_value.__enter__.return_value
            http.get.return_value = _resposta_http(corpo)
            resultado = otimizar_rota_mapbox(paradas, {"latitude": -16.0, "longitude": -49.0})

        assert "/directions/v5/mapbox/driving/" in http.get.call_args.args[0]
        # pré-ordenado pelo vizinho mais próximo a partir do ponto inicial
        assert [p["nome"] for p in resultado["paradas"]] == [str(i) for i in range(1, 13)]

    def test_mapbox_erro_da_api_devolve_none(self):
        with mock.patch.object(settings, "MAPBOX_ACCESS_TOKEN", "pk.teste"), \
                mock.patch("sunflow.services.rota.httpx.Client") as client_cls:
            http = client_cls.return_value.__enter__.return_value
            http.get.return_value = _resposta_http({"code": "InvalidInput", "message": "coordenadas"})
            assert otimizar_rota_mapbox([_parada(lat=-16.7, lon=-49.3)], self.EMPRESA) is None

    def test_osrm_tenta_o_proximo_servidor(self):
        a = _parada(lat=-16.33, lon=-48.95, nome="A")
        falha = httpx.ConnectError("recusado")
        corpo = {"code": "Ok", "trips": [{"distance": 52000.0, "duration": 3000.0}], "waypoints": []}
        with mock.patch("sunflow.services.rota.httpx.Client") as client_cls:
            http = client_cls.return_value.__enter__.return_value
            http.get.side_effect = [falha, _resposta_http(corpo)]
            resultado = otimizar_rota_osrm([a], self.EMPRESA)
        assert http.get.call_count == 2
        assert resultado["provedor"] == "osrm"
        assert resultado["servidor"] == "https://routing.openstreetmap.de/routed-car"
        assert [p["nome"] for p in resultado["paradas"]] == ["A"]


class TestTotaisRota:
    def test_menos_de_duas_coordenadas(self):
        esperado = {"distancia_km": 0.0, "tempo_minutos": 0.0, "distancia": "0 km", "tempo": "0h 0min"}
        assert calcular_totais_rota([]) == esperado
        assert calcular_totais_rota([_parada(lat=-16.7, lon=-49.3), _parada()]) == esperado

    def test_distancia_e_tempo(self):
        a = _parada(lat=-16.6869, lon=-49.2648)
        b = _parada(lat=-16.3281, lon=-48.9534, tempo_estimado=1)
        totais = calcular_totais_rota([a, b])
        distancia = haversine_km(-16.6869, -49.2648, -16.3281, -48.9534)
        assert totais["distancia_km"] == round(distancia, 2)
        # deslocamento a 30 km/h + 15 min da parada + 1 h de serviço
        assert totais["tempo_minutos"] == pytest.approx(distancia * 2 + 15 + 60, abs=0.1)
        assert totais["distancia"] == f"{distancia:.1f} km"


def test_formatacao():
    assert formatar_distancia(12.345) == "12.3 km"
    assert formatar_duracao(135) == "2h 15min"
    assert formatar_duracao(59.9) == "0h 59min"
    assert formatar_duracao(-5) == "0h 0min"
