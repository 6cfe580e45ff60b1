import logging
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query, File, UploadFile, Response
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core.config import settings
from sunflow.core.permissions import PERM_VER_CLIENTES, PERM_GERENCIAR_CLIENTES, PERM_IMPORTAR_CLIENTES
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.cliente import Cliente, ClienteCreate, ClienteUpdate, RelatorioImportacao
from sunflow.schemas.common import Msg
from sunflow.services.cliente import cliente_service
from sunflow.services.geocodificacao import geocodificar_cliente
from sunflow.services.importacao_clientes import importar_clientes, gerar_modelo_importacao

logger = logging.getLogger(__name__)
router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/modelo-importacao",
            dependencies=[Depends(deps.PermissionChecker([PERM_IMPORTAR_CLIENTES]))],
            summary="Planilha modelo para importação de clientes")
def download_modelo_importacao() -> Response:
    conteudo = gerar_modelo_importacao()
    return Response(
        content=conteudo,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="modelo_importacao_clientes.xlsx"'},
    )


@router.post("/importar",
             response_model=RelatorioImportacao,
             dependencies=[Depends(deps.PermissionChecker([PERM_IMPORTAR_CLIENTES]))],
             summary="Importar clientes de planilha Excel")
async def importar_clientes_planilha(
    *,
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    dry_run: bool = Query(False, description="Apenas valida, sem gravar"),
    file: UploadFile = File(..., description="Planilha .xlsx"),
) -> Any:
    """
    Lê a planilha (cabeçalho na primeira linha), valida cada linha e cria os
    clientes válidos. Com `dry_run` devolve só o relatório de validação.
    """
    logger.info(f"Usuário '{current_user.nome_usuario}' importando clientes de '{file.filename}' (dry_run={dry_run}).")
    if not file.filename or not file.filename.lower().endswith(".xlsx"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Envie um arquivo Excel (.xlsx).")

    conteudo = await file.read()
    await file.close()
    if len(conteudo) > settings.MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"O arquivo excede o tamanho máximo permitido ({settings.MAX_FILE_SIZE_BYTES // 1024 // 1024} MB)."
        )

    try:
        relatorio, _ = importar_clientes(db, conteudo=conteudo, dry_run=dry_run)
        if not dry_run:
            db.commit()
        return relatorio
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado na importação de clientes: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao importar clientes.")


@router.post("/",
             response_model=Cliente,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_CLIENTES]))],
             summary="Criar cliente")
def create_cliente(
    *,
    db: Session = Depends(deps.get_db),
    cliente_in: ClienteCreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Cria um cliente. CNPJ/CPF, UF e CEP são validados e formatados.
    """
    logger.info(f"Usuário '{current_user.nome_usuario}' criando o cliente '{cliente_in.empresa}'.")
    try:
        cliente = cliente_service.create(db=db, obj_in=cliente_in)
        db.commit()
        db.refresh(cliente)
        logger.info(f"Cliente '{cliente.empresa}' (ID: {cliente.id}) criado.")
        return cliente
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado criando o cliente '{cliente_in.empresa}': {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o cliente.")


@router.get("/",
            response_model=List[Cliente],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_CLIENTES]))],
            summary="Listar clientes")
def read_clientes(
    db: Session = Depends(deps.get_db),
    busca: Optional[str] = Query(None, description="Busca por empresa ou documento"),
    cidade: Optional[str] = Query(None),
    estado: Optional[str] = Query(None, min_length=2, max_length=2),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    return cliente_service.get_multi_filtered(db, busca=busca, cidade=cidade, estado=estado, skip=skip, limit=limit)


@router.get("/{cliente_id}",
            response_model=Cliente,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_CLIENTES]))],
            summary="Obter cliente por ID")
def read_cliente_by_id(cliente_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    return cliente_service.get_or_404(db, id=cliente_id)


@router.put("/{cliente_id}",
            response_model=Cliente,
            dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_CLIENTES]))],
            summary="Atualizar cliente")
def update_cliente(
    *,
    db: Session = Depends(deps.get_db),
    cliente_id: PyUUID,
    cliente_in: ClienteUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    logger.info(f"Usuário '{current_user.nome_usuario}' atualizando o cliente ID {cliente_id}.")
    cliente = cliente_service.get_or_404(db, id=cliente_id)
    try:
        cliente = cliente_service.update(db=db, db_obj=cliente, obj_in=cliente_in)
        db.commit()
        db.refresh(cliente)
        return cliente
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o cliente ID {cliente_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o cliente.")


@router.post("/{cliente_id}/geocodificar",
             response_model=Cliente,
             dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_CLIENTES]))],
             summary="Geocodificar o endereço do cliente")
def geocodificar_cliente_endpoint(cliente_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    cliente = cliente_service.get_or_404(db, id=cliente_id)
    try:
        encontrado = geocodificar_cliente(db, cliente)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado geocodificando o cliente ID {cliente_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao geocodificar o cliente.")
    if not encontrado:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Não foi possível localizar o endereço do cliente.")
    db.refresh(cliente)
    return cliente


@router.delete("/{cliente_id}",
               response_model=Msg,
               dependencies=[Depends(deps.PermissionChecker([PERM_GERENCIAR_CLIENTES]))],
               summary="Excluir cliente")
def delete_cliente(
    *,
    db: Session = Depends(deps.get_db),
    cliente_id: PyUUID,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """Clientes com tickets não podem ser excluídos."""
    logger.warning(f"Usuário '{current_user.nome_usuario}' excluindo o cliente ID {cliente_id}.")
    try:
        cliente = cliente_service.remove(db=db, id=cliente_id)
        db.commit()
        return {"msg": f"Cliente '{cliente.empresa}' excluído com sucesso."}
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado excluindo o cliente ID {cliente_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao excluir o cliente.")
