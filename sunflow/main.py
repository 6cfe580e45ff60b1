import logging
from pathlib import Path
import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Mount
from contextlib import asynccontextmanager

from sunflow.core.config import settings
from sunflow.api.routes import api_router
from sunflow.core.logging_config import setup_logging
from sunflow.core.error_handlers import register_error_handlers

setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("*"*50)
    logger.info(f"Iniciando aplicação: {settings.PROJECT_NAME}")
    logger.info("*"*50)

    PORT = os.getenv("PORT", "8086")
    BASE_URL = f"http://127.0.0.1:{PORT}"
    logger.info(f"API Docs (Swagger UI): {BASE_URL}{settings.API_V1_STR}/docs")
    logger.info(f"API Docs (ReDoc):      {BASE_URL}{settings.API_V1_STR}/redoc")
    logger.info("*"*50)

    yield

    logger.info("*"*50)
    logger.info(f"Encerrando aplicação: {settings.PROJECT_NAME}")
    logger.info("*"*50)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API de operação e manutenção de usinas solares: tickets, ordens de serviço, agenda, RME e rotas.",
    version="1.0.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    lifespan=lifespan
)

# --- CORS ---
if settings.BACKEND_CORS_ORIGINS:
    logger.info(f"Configurando CORS para as origens: {settings.BACKEND_CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    logger.warning("CORS não configurado (BACKEND_CORS_ORIGINS ausente no .env)")

register_error_handlers(app)

# --- Arquivos enviados (fotos, anexos, PDFs) ---
uploads_path = Path(settings.UPLOADS_DIRECTORY)
uploads_path.mkdir(parents=True, exist_ok=True)
static_route_prefix = f"/static/{uploads_path.name}"
is_mounted = any(
    isinstance(route, Mount) and route.path == static_route_prefix
    for route in app.routes
)
if not is_mounted:
    app.mount(static_route_prefix, StaticFiles(directory=uploads_path), name="uploads")
    logger.info(f"Servindo arquivos estáticos de '{uploads_path}' em '{static_route_prefix}'")

app.include_router(api_router, prefix=settings.API_V1_STR)
logger.info(f"Routers da API incluídos sob o prefixo: {settings.API_V1_STR}")

@app.get("/", tags=["Root"], include_in_schema=False)
def read_root() -> dict:
    return {"status": "ok", "message": f"Bem-vindo à {settings.PROJECT_NAME}"}
