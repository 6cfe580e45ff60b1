import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from datetime import datetime

LOGS_DIR = Path(os.getenv("LOGS_DIRECTORY", "logs"))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILENAME = LOGS_DIR / f"sunflow_{datetime.now().strftime('%Y%m%d')}.log"

LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)-8s] [%(name)s] [%(process)d:%(threadName)s] [%(filename)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(formatter)
console_handler.setLevel(LOG_LEVEL)

# Rotação diária, mantém as últimas 2 semanas
file_handler = TimedRotatingFileHandler(
    filename=LOG_FILENAME,
    when="midnight",
    interval=1,
    backupCount=14,
    encoding='utf-8',
    delay=True
)
file_handler.setFormatter(formatter)
file_handler.setLevel(LOG_LEVEL)

def setup_logging():
    """Configura os handlers e o nível do logger raiz e de loggers específicos."""
    root_logger = logging.getLogger()
    root_logger.setLevel(LOG_LEVEL)
    # Evita handlers duplicados com --reload
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    root_logger.info("="*50)
    root_logger.info("Configuração de logging iniciada")
    root_logger.info(f"Nível de log: {logging.getLevelName(LOG_LEVEL)}")
    root_logger.info(f"Arquivo de log: {LOG_FILENAME}")
    root_logger.info("="*50)
