import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.services.presenca import confirmar_presenca

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/confirmar",
            response_class=HTMLResponse,
            summary="Confirmar presença do técnico (link do lembrete)")
def confirmar_presenca_endpoint(
    request: Request,
    db: Session = Depends(deps.get_db),
    os_id: Optional[str] = Query(None),
    token: Optional[str] = Query(None),
) -> HTMLResponse:
    """
    Endpoint público aberto pelo técnico a partir do e-mail de lembrete.
    Responde sempre com uma página HTML; toda tentativa fica registrada.
    """
    ip = request.client.host if request.client else "desconhecido"
    try:
        status_code, html = confirmar_presenca(db, os_id=os_id, token=token, ip=ip)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado confirmando presença (OS {os_id}, IP {ip}): {e}", exc_info=True)
        raise
    return HTMLResponse(content=html, status_code=status_code)
