import logging
import secrets
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Header, Request, Response
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.config import settings
from sunflow.core.datas import hoje_local
from sunflow.services import exportacao

logger = logging.getLogger(__name__)
router = APIRouter()


def verificar_api_key(x_api_key: Optional[str] = Header(None, alias="x-api-key")):
    """Autenticação por chave fixa para integrações (planilhas, BI)."""
    if not settings.EXPORT_API_KEY:
        logger.error("EXPORT_API_KEY não configurada; exportação indisponível.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API de exportação não configurada no servidor."
        )
    if not x_api_key or not secrets.compare_digest(x_api_key, settings.EXPORT_API_KEY):
        logger.warning("Tentativa de exportação com chave de API inválida.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Chave de API inválida ou ausente.")


@router.get("/",
            dependencies=[Depends(verificar_api_key)],
            summary="Exportar dados em JSON ou CSV")
def exportar_dados(
    request: Request,
    db: Session = Depends(deps.get_db),
    table: Optional[str] = Query(None, description="Tabela a exportar; sem ela, devolve as instruções de uso"),
    formato: Literal["json", "csv"] = Query("json", alias="format"),
    limit: int = Query(exportacao.LIMITE_PADRAO, ge=1),
    offset: int = Query(0, ge=0),
    order_by: str = Query("created_at"),
    order_dir: Literal["asc", "desc"] = Query("desc"),
    status_filtro: Optional[str] = Query(None, alias="status"),
    date_from: Optional[str] = Query(None, description="created_at a partir de (AAAA-MM-DD)"),
    date_to: Optional[str] = Query(None, description="created_at até (AAAA-MM-DD)"),
    updated_from: Optional[str] = Query(None, description="updated_at a partir de (data ou ISO)"),
    updated_to: Optional[str] = Query(None, description="updated_at até (data ou ISO)"),
) -> Any:
    if not table:
        return exportacao.instrucoes_uso(str(request.url.replace(query="")))

    limit = min(limit, exportacao.LIMITE_MAXIMO)
    linhas = exportacao.consultar(
        db,
        tabela=table,
        limit=limit,
        offset=offset,
        order_by=order_by,
        order_dir=order_dir,
        status_filtro=status_filtro,
        date_from=date_from,
        date_to=date_to,
        updated_from=updated_from,
        updated_to=updated_to,
    )

    if formato == "csv":
        return Response(
            content=exportacao.converter_para_csv(linhas),
            media_type="text/csv; charset=utf-8",
            headers={
                "Content-Disposition": f'attachment; filename="{exportacao.nome_arquivo_csv(table, hoje_local())}"'
            },
        )
    return {"table": table, "count": len(linhas), "limit": limit, "offset": offset, "data": linhas}
