import os
import json
from typing import List, Union, Optional, Any
from pydantic import field_validator, PostgresDsn, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    """
    Configurações da aplicação, lidas de variáveis de ambiente.
    """
    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # --- Projeto ---
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "SunFlow OS API")
    API_V1_STR: str = os.getenv("API_V1_STR", "/api/v1")
    SECRET_KEY: str = str(os.getenv("SECRET_KEY"))
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")

    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
    REFRESH_TOKEN_SECRET_KEY: str = str(os.getenv("REFRESH_TOKEN_SECRET_KEY"))
    REFRESH_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

    # --- Banco de dados ---
    POSTGRES_SERVER: str = os.getenv("POSTGRES_SERVER", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "password")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "sunflow")
    DATABASE_DRIVER: str = os.getenv("DATABASE_DRIVER", "psycopg")
    # Schema opcional; vazio usa o schema padrão da conexão (necessário no SQLite)
    DB_SCHEMA: Optional[str] = os.getenv("DB_SCHEMA") or None

    DATABASE_URI: Optional[str] = None

    @field_validator("DATABASE_URI", mode='before')
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        if isinstance(v, str) and v:
            return v

        driver = info.data.get("DATABASE_DRIVER", "psycopg")
        scheme = f"postgresql+{driver}"

        return str(PostgresDsn.build(
            scheme=scheme,
            username=info.data.get("POSTGRES_USER"),
            password=info.data.get("POSTGRES_PASSWORD"),
            host=info.data.get("POSTGRES_SERVER"),
            port=int(info.data.get("POSTGRES_PORT", 5432)),
            path=f"{info.data.get('POSTGRES_DB') or ''}",
        ))

    # --- CORS ---
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and v:
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        elif isinstance(v, list):
            return v
        return []

    # --- Celery ---
    CELERY_BROKER_URL: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    CELERY_RESULT_BACKEND: str = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
    REMINDER_HOUR: int = int(os.getenv("REMINDER_HOUR", "18"))  # hora local do envio dos lembretes

    # --- Armazenamento ---
    UPLOADS_DIRECTORY: str = os.getenv("UPLOADS_DIRECTORY", "./uploads")
    MAX_FILE_SIZE_BYTES: int = int(os.getenv("MAX_FILE_SIZE_BYTES", 10 * 1024 * 1024)) # 10 MB

    # --- E-mail (Resend) ---
    RESEND_API_KEY: Optional[str] = os.getenv("RESEND_API_KEY") or None
    EMAIL_FROM_ADDRESS: str = os.getenv("EMAIL_FROM_ADDRESS", "SunFlow <noreply@sunflow.grupoevolight.com.br>")
    TEAM_EMAIL: Optional[str] = os.getenv("TEAM_EMAIL", "operacao@grupoevolight.com.br") or None
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://127.0.0.1:8086")
    TIMEZONE: str = os.getenv("TIMEZONE", "America/Sao_Paulo")

    # --- Geocodificação e rotas ---
    NOMINATIM_BASE_URL: str = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org")
    NOMINATIM_USER_AGENT: str = os.getenv("NOMINATIM_USER_AGENT", "SunFlow-OS/1.0")
    OSRM_BASE_URL: str = os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org")
    MAPBOX_ACCESS_TOKEN: Optional[str] = os.getenv("MAPBOX_ACCESS_TOKEN") or None
    MAPBOX_BASE_URL: str = os.getenv("MAPBOX_BASE_URL", "https://api.mapbox.com")
    GEOCODING_CACHE_DAYS: int = int(os.getenv("GEOCODING_CACHE_DAYS", "90"))
    ROUTING_TIMEOUT_SECONDS: float = float(os.getenv("ROUTING_TIMEOUT_SECONDS", "15"))

    # --- Ponto de partida das rotas (sede) ---
    EMPRESA_NOME: str = os.getenv("EMPRESA_NOME", "Evolight")
    EMPRESA_ENDERECO: str = os.getenv("EMPRESA_ENDERECO", "Avenida T9 1001, Setor Bueno, Goiânia-GO, CEP 74215-025")
    EMPRESA_LATITUDE: float = float(os.getenv("EMPRESA_LATITUDE", "-16.6869"))
    EMPRESA_LONGITUDE: float = float(os.getenv("EMPRESA_LONGITUDE", "-49.2648"))

    # --- Exportação ---
    EXPORT_API_KEY: Optional[str] = os.getenv("EXPORT_API_KEY") or None

    # --- Outros ---
    MAX_FAILED_ATTEMPTS_BEFORE_LOCK: int = int(os.getenv("MAX_FAILED_ATTEMPTS_BEFORE_LOCK", "5"))

    # --- Superusuário inicial ---
    SUPERUSER_EMAIL: str = str(os.getenv("SUPERUSER_EMAIL"))
    SUPERUSER_PASSWORD: str = str(os.getenv("SUPERUSER_PASSWORD"))

settings = Settings()
