import logging
from typing import Optional, Set
import uuid
from pathlib import Path
from fastapi import UploadFile, HTTPException, status
import aiofiles
import aiofiles.os

from sunflow.core.config import settings

logger = logging.getLogger(__name__)

UPLOAD_DIR = Path(settings.UPLOADS_DIRECTORY)
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/webp",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # .xlsx
    "text/plain",
}

IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/webp"}


def _destination(subdir: Optional[str], filename: str) -> Path:
    relative_path = Path(subdir) / filename if subdir else Path(filename)
    destination = UPLOAD_DIR / relative_path
    destination.parent.mkdir(parents=True, exist_ok=True)
    return relative_path


async def save_upload_file(
    upload_file: UploadFile,
    subdir: Optional[str] = None,
    allowed_mime_types: Optional[Set[str]] = None,
) -> dict:
    """
    Salva um arquivo enviado no diretório de uploads e devolve seus metadados.
    """
    if not upload_file or not upload_file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nenhum arquivo enviado ou arquivo sem nome.")

    size = upload_file.size
    if size is None:
        raise HTTPException(status_code=status.HTTP_411_LENGTH_REQUIRED, detail="Não foi possível determinar o tamanho do arquivo.")

    if size > settings.MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"O arquivo excede o tamanho máximo permitido ({settings.MAX_FILE_SIZE_BYTES / 1024 / 1024:.1f} MB).",
        )

    allowed = allowed_mime_types or ALLOWED_MIME_TYPES
    mime_type = upload_file.content_type
    if mime_type not in allowed:
        logger.warning(f"Tentativa de enviar arquivo com tipo MIME não permitido: {mime_type}")
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Tipo de arquivo '{mime_type}' não permitido. Permitidos: {', '.join(sorted(allowed))}",
        )

    unique_filename = f"{uuid.uuid4()}{Path(upload_file.filename).suffix}"
    relative_path = _destination(subdir, unique_filename)
    destination_path = UPLOAD_DIR / relative_path

    try:
        async with aiofiles.open(destination_path, "wb") as out_file:
            while content := await upload_file.read(1024 * 1024):
                await out_file.write(content)
        logger.info(f"Arquivo '{upload_file.filename}' salvo como '{relative_path}' em {UPLOAD_DIR}")
    except OSError as e:
        logger.error(f"Erro ao salvar o arquivo {relative_path}: {e}", exc_info=True)
        if await aiofiles.os.path.exists(destination_path):
            await aiofiles.os.remove(destination_path)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Não foi possível salvar o arquivo no servidor.",
        )
    finally:
        await upload_file.close()

    return {
        "file_path": relative_path.as_posix(),
        "filename": upload_file.filename,
        "mime_type": mime_type,
        "size": size,
    }


async def save_generated_file(content: bytes, filename: str, subdir: Optional[str] = None) -> str:
    """Grava um arquivo gerado pela aplicação (PDF, planilha) e devolve o caminho relativo."""
    relative_path = _destination(subdir, filename)
    async with aiofiles.open(UPLOAD_DIR / relative_path, "wb") as out_file:
        await out_file.write(content)
    logger.info(f"Arquivo gerado salvo em '{relative_path}' ({len(content)} bytes)")
    return relative_path.as_posix()


async def read_file(file_path_relative: str) -> bytes:
    full_path = UPLOAD_DIR / file_path_relative
    if not await aiofiles.os.path.isfile(full_path):
        raise FileNotFoundError(f"Arquivo não encontrado: {full_path}")
    async with aiofiles.open(full_path, "rb") as in_file:
        return await in_file.read()


async def delete_uploaded_file(file_path_relative: Optional[str]):
    """
    Remove um arquivo do diretório de uploads.
    Lança FileNotFoundError quando o arquivo não existe em disco.
    """
    if not file_path_relative:
        logger.warning("Tentativa de remover arquivo com caminho vazio.")
        return

    full_path = UPLOAD_DIR / file_path_relative
    if await aiofiles.os.path.isfile(full_path):
        await aiofiles.os.remove(full_path)
        logger.info(f"Arquivo '{full_path}' removido.")
    else:
        logger.warning(f"Arquivo não encontrado em disco: '{full_path}'.")
        raise FileNotFoundError(f"Arquivo físico não encontrado: {full_path}")


def get_file_url(relative_path: Optional[str]) -> Optional[str]:
    """URL pública do arquivo servido estaticamente."""
    if not relative_path:
        return None
    return f"/static/{UPLOAD_DIR.name}/{relative_path}"
