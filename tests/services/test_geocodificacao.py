from datetime import timedelta
from unittest import mock

from sqlalchemy import select
from sqlalchemy.orm import Session

from sunflow.core.config import settings
from sunflow.core.datas import agora_utc
from sunflow.models import CacheGeocodificacao, Cliente
from sunflow.services.geocodificacao import (
    geocodificar_com_cache, geocodificar_endereco, geocodificar_mapbox, geocodificar_nominatim,
    geocodificar_ticket, limpar_endereco_mapbox, salvar_cache,
)

from tests.utils import criar_ticket

ENDERECO = "Avenida T9 1001, Setor Bueno, Goiânia-GO"
RESULTADO = {"latitude": -16.6869, "longitude": -49.2648, "endereco_formatado": "Av. T-9, 1001, Goiânia", "provedor": "nominatim"}


def _cliente_http(client_cls: mock.MagicMock, corpo) -> mock.MagicMock:
    http = client_cls.return_value.__enter__.return_value
    http.get.return_value.json.return_value = corpo
    return http


class TestCache:
    def test_segunda_consulta_usa_o_cache(self, db: Session, geocodificador_mock: mock.MagicMock):
        geocodificador_mock.return_value = RESULTADO
        assert geocodificar_com_cache(db, ENDERECO) == (-16.6869, -49.2648)
        # mesma chave depois de normalizar caixa e espaços
        assert geocodificar_com_cache(db, "  avenida t9 1001,   setor bueno, GOIÂNIA-GO ") == (-16.6869, -49.2648)
        geocodificador_mock.assert_called_once_with(ENDERECO)

        entrada = db.execute(select(CacheGeocodificacao)).scalar_one()
        assert entrada.endereco_normalizado == "avenida t9 1001, setor bueno, goiânia-go"
        assert entrada.endereco_formatado == "Av. T-9, 1001, Goiânia"
        assert entrada.provedor == "nominatim"

    def test_entrada_expirada_consulta_de_novo(self, db: Session, geocodificador_mock: mock.MagicMock):
        entrada = salvar_cache(db, ENDERECO, {**RESULTADO, "latitude": -10.0, "longitude": -48.0})
        entrada.cached_at = agora_utc() - timedelta(days=settings.GEOCODING_CACHE_DAYS + 1)
        db.flush()

        geocodificador_mock.return_value = RESULTADO
        assert geocodificar_com_cache(db, ENDERECO) == (-16.6869, -49.2648)
        geocodificador_mock.assert_called_once()
        assert len(db.execute(select(CacheGeocodificacao)).scalars().all()) == 1

    def test_forcar_ignora_o_cache(self, db: Session, geocodificador_mock: mock.MagicMock):
        salvar_cache(db, ENDERECO, RESULTADO)
        geocodificador_mock.return_value = {**RESULTADO, "latitude": -16.70}
        assert geocodificar_com_cache(db, ENDERECO, forcar=True) == (-16.70, -49.2648)

    def test_endereco_nao_encontrado_nao_grava(self, db: Session, geocodificador_mock: mock.MagicMock):
        assert geocodificar_com_cache(db, ENDERECO) is None
        assert geocodificar_com_cache(db, "   ") is None
        assert db.execute(select(CacheGeocodificacao)).first() is None

    def test_ticket_geocodificado_pelo_cache(self, db: Session, cliente: Cliente, geocodificador_mock: mock.MagicMock):
        ticket = criar_ticket(db, cliente=cliente, endereco_servico=ENDERECO)
        salvar_cache(db, ENDERECO, RESULTADO)
        geocodificador_mock.reset_mock()

        assert geocodificar_ticket(db, ticket) is True
        assert (ticket.latitude, ticket.longitude) == (-16.6869, -49.2648)
        assert ticket.geocoded_at is not None
        geocodificador_mock.assert_not_called()


class TestProvedores:
    def test_limpeza_do_endereco_para_o_mapbox(self):
        assert limpar_endereco_mapbox("Rua 5, Q. 02, L. 08-11, S/N - Setor Sul, Goiânia") == "Rua 5, Setor Sul, Goiânia"
        assert limpar_endereco_mapbox("Residencial Solar ETAPA II, Anápolis") == "Residencial Solar , Anápolis"
        # curto demais depois da limpeza: mantém o endereço informado
        assert limpar_endereco_mapbox("Q. 12 L. 3") == "Q. 12 L. 3"

    def test_mapbox_inverte_o_centro(self):
        corpo = {"features": [{"center": [-49.2648, -16.6869], "place_name": "Avenida T-9, Goiânia - Goiás"}]}
        with mock.patch.object(settings, "MAPBOX_ACCESS_TOKEN", "pk.teste"), \
                mock.patch("sunflow.services.geocodificacao.httpx.Client") as client_cls:
            http = _cliente_http(client_cls, corpo)
            resultado = geocodificar_mapbox(ENDERECO)

        assert "/geocoding/v5/mapbox.places/" in http.get.call_args.args[0]
        assert http.get.call_args.kwargs["params"]["country"] == "BR"
        assert resultado == {
            "latitude": -16.6869, "longitude": -49.2648,
            "endereco_formatado": "Avenida T-9, Goiânia - Goiás", "provedor": "mapbox",
        }

    def test_mapbox_sem_token(self):
        with mock.patch.object(settings, "MAPBOX_ACCESS_TOKEN", None), \
                mock.patch("sunflow.services.geocodificacao.httpx.Client") as client_cls:
            assert geocodificar_mapbox(ENDERECO) is None
        client_cls.assert_not_called()

    def test_nominatim(self):
        corpo = [{"lat": "-16.6869", "lon": "-49.2648", "display_name": "Setor Bueno, Goiânia"}]
        with mock.patch("sunflow.services.geocodificacao.httpx.Client") as client_cls:
            http = _cliente_http(client_cls, corpo)
            resultado = geocodificar_nominatim(ENDERECO)
        assert http.get.call_args.kwargs["params"]["countrycodes"] == "br"
        assert resultado["provedor"] == "nominatim"
        assert (resultado["latitude"], resultado["longitude"]) == (-16.6869, -49.2648)

    def test_nominatim_sem_resultado(self):
        with mock.patch("sunflow.services.geocodificacao.httpx.Client") as client_cls:
            _cliente_http(client_cls, [])
            assert geocodificar_nominatim(ENDERECO) is None

    def test_cadeia_cai_no_nominatim(self):
        with mock.patch("sunflow.services.geocodificacao.geocodificar_mapbox", return_value=None) as mapbox, \
                mock.patch("sunflow.services.geocodificacao.geocodificar_nominatim", return_value=RESULTADO) as nominatim:
            assert geocodificar_endereco(f"  {ENDERECO} ") == RESULTADO
        mapbox.assert_called_once_with(ENDERECO)
        nominatim.assert_called_once_with(ENDERECO)

    def test_cadeia_para_no_mapbox(self):
        encontrado = {**RESULTADO, "provedor": "mapbox"}
        with mock.patch("sunflow.services.geocodificacao.geocodificar_mapbox", return_value=encontrado), \
                mock.patch("sunflow.services.geocodificacao.geocodificar_nominatim") as nominatim:
            assert geocodificar_endereco(ENDERECO) == encontrado
        nominatim.assert_not_called()
