import os
import tempfile

# Ambiente de teste definido antes de qualquer import do pacote (as
# configurações são lidas na importação).
os.environ["DATABASE_URI"] = "sqlite+pysqlite:///:memory:"
os.environ["DB_SCHEMA"] = ""
os.environ.setdefault("SECRET_KEY", "chave-secreta-de-testes-sunflow")
os.environ.setdefault("REFRESH_TOKEN_SECRET_KEY", "chave-refresh-de-testes-sunflow")
os.environ.setdefault("UPLOADS_DIRECTORY", tempfile.mkdtemp(prefix="sunflow_uploads_"))
os.environ.setdefault("LOGS_DIRECTORY", tempfile.mkdtemp(prefix="sunflow_logs_"))
os.environ.setdefault("EXPORT_API_KEY", "chave-exportacao-teste")
os.environ.setdefault("RESEND_API_KEY", "re_teste")
os.environ.setdefault("TEAM_EMAIL", "operacao@evolight.com.br")
os.environ.setdefault("TIMEZONE", "America/Sao_Paulo")

import logging
from decimal import Decimal
from typing import AsyncGenerator, Dict, Generator
from unittest import mock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker, Session

from sunflow.main import app as fastapi_app
from sunflow.core.config import settings
from sunflow.core.password import get_password_hash
from sunflow.core import permissions as perms
from sunflow.api.deps import get_db
from sunflow.db.base import Base
from sunflow.db.session import engine
from sunflow.models import Cliente, Insumo, Papel, Tecnico, Ticket, Usuario, OrdemServico
from sunflow.schemas.enums import TicketStatusEnum
from sunflow.services.papel import carregar_papeis_padrao

from tests.utils import (
    get_auth_token, criar_ticket, criar_os,
    TEST_ADMIN_PASSWORD, TEST_AREA_TECNICA_PASSWORD, TEST_TECNICO_PASSWORD, TEST_CLIENTE_PASSWORD,
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] [%(name)s] [%(funcName)s] %(message)s')
logger = logging.getLogger(__name__)
logger.setLevel(logging.DEBUG)

logger.info(f"Usando URL de BD para tests: {settings.DATABASE_URI}")


# O pysqlite abre transações por conta própria e quebra os SAVEPOINTs; o
# controle passa a ser do SQLAlchemy.
@event.listens_for(engine, "connect")
def _sqlite_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None

@event.listens_for(engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, join_transaction_mode="create_savepoint")


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app

@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    logger.info("== Criando as tabelas para a sessão de testes ==")
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    logger.info("== Tabelas removidas ==")

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Sessão por teste dentro de uma transação externa. Os commits das rotas
    liberam savepoints; tudo é desfeito ao final do teste.
    """
    connection = engine.connect()
    transaction = connection.begin()
    db_session = TestingSessionLocal(bind=connection)
    try:
        yield db_session
    finally:
        db_session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()

@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI, db: Session) -> AsyncGenerator[AsyncClient, None]:
    def override_get_db_for_test():
        yield db

    app.dependency_overrides[get_db] = override_get_db_for_test
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


# ==============================================================================
# Serviços externos
# ==============================================================================

@pytest.fixture(autouse=True)
def resend_mock() -> Generator[mock.MagicMock, None, None]:
    """Nenhum e-mail sai dos testes; o mock registra as chamadas."""
    with mock.patch("resend.Emails.send", return_value={"id": "email-teste"}) as send:
        yield send

@pytest.fixture(autouse=True)
def geocodificador_mock() -> Generator[mock.MagicMock, None, None]:
    with mock.patch("sunflow.services.geocodificacao.geocodificar_endereco", return_value=None) as geo:
        yield geo

@pytest.fixture(autouse=True)
def mapbox_mock() -> Generator[mock.MagicMock, None, None]:
    with mock.patch("sunflow.services.rota.otimizar_rota_mapbox", return_value=None) as mapbox:
        yield mapbox

@pytest.fixture(autouse=True)
def osrm_mock() -> Generator[mock.MagicMock, None, None]:
    with mock.patch("sunflow.services.rota.otimizar_rota_osrm", return_value=None) as osrm:
        yield osrm


# ==============================================================================
# Usuários e tokens
# ==============================================================================

@pytest.fixture(scope="function")
def papeis(db: Session) -> Dict[str, Papel]:
    resultado = carregar_papeis_padrao(db)
    db.commit()
    return resultado

def _criar_usuario(db: Session, nome_usuario: str, senha: str, papel: Papel) -> Usuario:
    usuario = Usuario(
        nome_usuario=nome_usuario,
        nome_completo=nome_usuario.replace("_", " ").title(),
        email=f"{nome_usuario}@evolight.com.br",
        hashed_password=get_password_hash(senha),
        papel_id=papel.id,
        bloqueado=False,
        tentativas_falhas=0,
    )
    db.add(usuario)
    db.commit()
    db.refresh(usuario)
    logger.debug(f"Usuário de teste '{nome_usuario}' criado com papel '{papel.nome}'.")
    return usuario

@pytest.fixture(scope="function")
def admin_user(db: Session, papeis: Dict[str, Papel]) -> Usuario:
    return _criar_usuario(db, "admin_teste", TEST_ADMIN_PASSWORD, papeis[perms.ADMIN_ROLE_NAME])

@pytest.fixture(scope="function")
def area_tecnica_user(db: Session, papeis: Dict[str, Papel]) -> Usuario:
    return _criar_usuario(db, "area_tecnica", TEST_AREA_TECNICA_PASSWORD, papeis[perms.AREA_TECNICA_ROLE_NAME])

@pytest.fixture(scope="function")
def tecnico_user(db: Session, papeis: Dict[str, Papel]) -> Usuario:
    return _criar_usuario(db, "joao_tecnico", TEST_TECNICO_PASSWORD, papeis[perms.TECNICO_CAMPO_ROLE_NAME])

@pytest.fixture(scope="function")
def cliente_user(db: Session, papeis: Dict[str, Papel]) -> Usuario:
    return _criar_usuario(db, "portal_cliente", TEST_CLIENTE_PASSWORD, papeis[perms.CLIENTE_ROLE_NAME])

@pytest_asyncio.fixture(scope="function")
async def admin_token(client: AsyncClient, admin_user: Usuario) -> str:
    token = await get_auth_token(client, admin_user.nome_usuario, TEST_ADMIN_PASSWORD)
    assert token, "Falha ao obter o token do admin"
    return token

@pytest_asyncio.fixture(scope="function")
async def area_tecnica_token(client: AsyncClient, area_tecnica_user: Usuario) -> str:
    token = await get_auth_token(client, area_tecnica_user.nome_usuario, TEST_AREA_TECNICA_PASSWORD)
    assert token, "Falha ao obter o token da área técnica"
    return token

@pytest_asyncio.fixture(scope="function")
async def tecnico_token(client: AsyncClient, tecnico_user: Usuario, tecnico: Tecnico) -> str:
    token = await get_auth_token(client, tecnico_user.nome_usuario, TEST_TECNICO_PASSWORD)
    assert token, "Falha ao obter o token do técnico"
    return token

@pytest_asyncio.fixture(scope="function")
async def cliente_token(client: AsyncClient, cliente_user: Usuario) -> str:
    token = await get_auth_token(client, cliente_user.nome_usuario, TEST_CLIENTE_PASSWORD)
    assert token, "Falha ao obter o token do cliente"
    return token


# ==============================================================================
# Dados de domínio
# ==============================================================================

@pytest.fixture(scope="function")
def tecnico(db: Session, tecnico_user: Usuario) -> Tecnico:
    obj = Tecnico(
        nome="João da Silva",
        email="joao.tecnico@evolight.com.br",
        telefone="(62) 99999-0001",
        especialidades=["inversores", "limpeza de painéis"],
        ativo=True,
        usuario_id=tecnico_user.id,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

@pytest.fixture(scope="function")
def outro_tecnico(db: Session) -> Tecnico:
    obj = Tecnico(nome="Maria Souza", email="maria.tecnica@evolight.com.br", ativo=True)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

@pytest.fixture(scope="function")
def cliente(db: Session) -> Cliente:
    obj = Cliente(
        empresa="Usina Solar Cerrado",
        cnpj_cpf="11.222.333/0001-81",
        endereco="Rodovia GO-060 km 12",
        cidade="Goiânia",
        estado="GO",
        cep="74000-000",
        latitude=-16.70,
        longitude=-49.30,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

@pytest.fixture(scope="function")
def cliente_do_portal(db: Session, cliente_user: Usuario) -> Cliente:
    obj = Cliente(
        empresa="Fazenda Sol Nascente",
        cnpj_cpf="123.456.789-09",
        cidade="Anápolis",
        estado="GO",
        usuario_id=cliente_user.id,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

@pytest.fixture(scope="function")
def insumo(db: Session) -> Insumo:
    obj = Insumo(
        nome="Conector MC4",
        categoria="conectores",
        unidade="par",
        quantidade=Decimal("20"),
        estoque_minimo=Decimal("5"),
        estoque_critico=Decimal("2"),
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture(scope="function")
def ticket_aprovado(db: Session, cliente: Cliente, tecnico: Tecnico, admin_user: Usuario) -> Ticket:
    return criar_ticket(
        db, cliente=cliente, tecnico=tecnico, criado_por=admin_user, status_ticket=TicketStatusEnum.APROVADO
    )

@pytest.fixture(scope="function")
def ordem_servico(db: Session, ticket_aprovado: Ticket, admin_user: Usuario) -> OrdemServico:
    return criar_os(db, ticket=ticket_aprovado, usuario=admin_user)
