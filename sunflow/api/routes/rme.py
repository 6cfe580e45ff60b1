import logging
from typing import Any, List, Optional
from uuid import UUID as PyUUID

from fastapi import APIRouter, Depends, HTTPException, status, Query, Request, Response, File, UploadFile
from sqlalchemy.orm import Session

from sunflow.api import deps
from sunflow.core import storage
from sunflow.core.permissions import PERM_VER_RME, PERM_PREENCHER_RME, PERM_APROVAR_RME
from sunflow.models.rme_relatorio import RMERelatorio as RMEModel
from sunflow.models.tecnico import Tecnico as TecnicoModel
from sunflow.models.usuario import Usuario as UsuarioModel
from sunflow.schemas.enums import RMEStatusAprovacaoEnum, MomentoFotoEnum
from sunflow.schemas.rme import (
    RME, RMECreate, RMEUpdate, RMEAprovar, RMERejeitar, RMEChecklistItem, RMEChecklistItemUpdate, RMEChecklistLote,
)
from sunflow.services.rme import rme_service
from sunflow.services.rme_checklist import rme_checklist_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _verificar_autor(rme: RMEModel, usuario: UsuarioModel, tecnico: Optional[TecnicoModel]):
    if deps.is_tecnico_campo(usuario) and (not tecnico or rme.tecnico_id != tecnico.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Este RME pertence a outro técnico.")


@router.post("/",
             response_model=RME,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_PREENCHER_RME]))],
             summary="Preencher RME")
def create_rme(
    *,
    db: Session = Depends(deps.get_db),
    rme_in: RMECreate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """
    Cria o relatório de manutenção executada de uma OS. Quando enviado com
    status `concluido`, o ticket passa para `aguardando_rme`.
    """
    logger.info(f"Usuário '{current_user.nome_usuario}' preenchendo RME da OS {rme_in.ordem_servico_id}.")
    try:
        rme = rme_service.create(db=db, obj_in=rme_in, usuario=current_user)
        db.commit()
        db.refresh(rme)
        return rme
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado criando RME da OS {rme_in.ordem_servico_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao criar o RME.")


@router.get("/",
            response_model=List[RME],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_RME]))],
            summary="Listar RMEs")
def read_rmes(
    db: Session = Depends(deps.get_db),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    tecnico: Optional[TecnicoModel] = Depends(deps.get_current_tecnico_optional),
    status_aprovacao: Optional[RMEStatusAprovacaoEnum] = Query(None),
    tecnico_id: Optional[PyUUID] = Query(None),
    ticket_id: Optional[PyUUID] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    if deps.is_tecnico_campo(current_user):
        if not tecnico:
            return []
        tecnico_id = tecnico.id
    return rme_service.get_multi_filtered(
        db,
        status_aprovacao=status_aprovacao.value if status_aprovacao else None,
        tecnico_id=tecnico_id,
        ticket_id=ticket_id,
        skip=skip,
        limit=limit,
    )


@router.get("/{rme_id}",
            response_model=RME,
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_RME]))],
            summary="Obter RME por ID")
def read_rme_by_id(rme_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    return rme_service.get_or_404(db, id=rme_id)


@router.put("/{rme_id}",
            response_model=RME,
            dependencies=[Depends(deps.PermissionChecker([PERM_PREENCHER_RME]))],
            summary="Atualizar RME")
def update_rme(
    *,
    db: Session = Depends(deps.get_db),
    rme_id: PyUUID,
    rme_in: RMEUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    tecnico: Optional[TecnicoModel] = Depends(deps.get_current_tecnico_optional),
) -> Any:
    """Permitido enquanto o RME não for aprovado. Um RME rejeitado volta para `pendente`."""
    rme = rme_service.get_or_404(db, id=rme_id)
    _verificar_autor(rme, current_user, tecnico)
    try:
        rme = rme_service.update(db=db, db_obj=rme, obj_in=rme_in, usuario=current_user)
        db.commit()
        db.refresh(rme)
        return rme
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o RME {rme_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o RME.")


@router.post("/{rme_id}/fotos",
             response_model=RME,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(deps.PermissionChecker([PERM_PREENCHER_RME]))],
             summary="Enviar fotos do atendimento")
async def upload_rme_fotos(
    *,
    db: Session = Depends(deps.get_db),
    rme_id: PyUUID,
    momento: MomentoFotoEnum = Query(..., description="antes | depois"),
    files: List[UploadFile] = File(...),
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    tecnico: Optional[TecnicoModel] = Depends(deps.get_current_tecnico_optional),
) -> Any:
    rme = rme_service.get_or_404(db, id=rme_id)
    _verificar_autor(rme, current_user, tecnico)
    if rme.status_aprovacao == RMEStatusAprovacaoEnum.APROVADO.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="RME aprovado não pode ser alterado.")

    caminhos: List[str] = []
    try:
        for upload in files:
            file_info = await storage.save_upload_file(
                upload, subdir=f"rme/{rme.id}/{momento.value}", allowed_mime_types=storage.IMAGE_MIME_TYPES
            )
            caminhos.append(file_info["file_path"])
        rme = rme_service.adicionar_fotos(db, rme=rme, caminhos=caminhos, momento=momento)
        db.commit()
        db.refresh(rme)
        logger.info(f"{len(caminhos)} foto(s) '{momento.value}' adicionadas ao RME {rme.id}.")
        return rme
    except Exception as e:
        db.rollback()
        for caminho in caminhos:
            try:
                await storage.delete_uploaded_file(caminho)
            except FileNotFoundError:
                logger.warning(f"Foto '{caminho}' já não existia ao desfazer o upload.")
        if isinstance(e, HTTPException):
            raise
        logger.error(f"Erro inesperado salvando fotos do RME {rme_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao salvar as fotos.")


@router.get("/{rme_id}/checklist",
            response_model=List[RMEChecklistItem],
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_RME]))],
            summary="Checklist do RME")
def read_rme_checklist(rme_id: PyUUID, db: Session = Depends(deps.get_db)) -> Any:
    """Itens ordenados por categoria e chave."""
    return rme_service.get_or_404(db, id=rme_id).checklist_items


@router.patch("/{rme_id}/checklist/{item_id}",
              response_model=RMEChecklistItem,
              dependencies=[Depends(deps.PermissionChecker([PERM_PREENCHER_RME]))],
              summary="Marcar item do checklist")
def update_rme_checklist_item(
    *,
    db: Session = Depends(deps.get_db),
    rme_id: PyUUID,
    item_id: PyUUID,
    item_in: RMEChecklistItemUpdate,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    tecnico: Optional[TecnicoModel] = Depends(deps.get_current_tecnico_optional),
) -> Any:
    rme = rme_service.get_or_404(db, id=rme_id)
    _verificar_autor(rme, current_user, tecnico)
    try:
        item = rme_checklist_service.atualizar_item(db, rme=rme, item_id=item_id, obj_in=item_in)
        db.commit()
        db.refresh(item)
        return item
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado marcando o item {item_id} do RME {rme_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o checklist.")


@router.put("/{rme_id}/checklist",
            response_model=List[RMEChecklistItem],
            dependencies=[Depends(deps.PermissionChecker([PERM_PREENCHER_RME]))],
            summary="Atualizar checklist em lote")
def update_rme_checklist(
    *,
    db: Session = Depends(deps.get_db),
    rme_id: PyUUID,
    lote_in: RMEChecklistLote,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
    tecnico: Optional[TecnicoModel] = Depends(deps.get_current_tecnico_optional),
) -> Any:
    """
    `categorias` marca todos os itens dessas categorias (ferramentas, EPIs e
    medidas preventivas costumam ir juntos); `itens` ajusta itens avulsos.
    """
    rme = rme_service.get_or_404(db, id=rme_id)
    _verificar_autor(rme, current_user, tecnico)
    try:
        rme_checklist_service.atualizar_lote(db, rme=rme, obj_in=lote_in)
        db.commit()
        db.refresh(rme)
        return rme.checklist_items
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado atualizando o checklist do RME {rme_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao atualizar o checklist.")


@router.post("/{rme_id}/aprovar",
             response_model=RME,
             dependencies=[Depends(deps.PermissionChecker([PERM_APROVAR_RME]))],
             summary="Aprovar RME")
def aprovar_rme(
    *,
    request: Request,
    db: Session = Depends(deps.get_db),
    rme_id: PyUUID,
    aprovacao_in: Optional[RMEAprovar] = None,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    """Conclui o ticket e baixa do estoque os materiais vinculados a insumos."""
    rme = rme_service.get_or_404(db, id=rme_id)
    try:
        rme = rme_service.aprovar(
            db, rme=rme, obj_in=aprovacao_in or RMEAprovar(), aprovador=current_user, request=request
        )
        db.commit()
        db.refresh(rme)
        return rme
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado aprovando o RME {rme_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao aprovar o RME.")


@router.post("/{rme_id}/rejeitar",
             response_model=RME,
             dependencies=[Depends(deps.PermissionChecker([PERM_APROVAR_RME]))],
             summary="Rejeitar RME")
def rejeitar_rme(
    *,
    request: Request,
    db: Session = Depends(deps.get_db),
    rme_id: PyUUID,
    rejeicao_in: RMERejeitar,
    current_user: UsuarioModel = Depends(deps.get_current_active_user),
) -> Any:
    rme = rme_service.get_or_404(db, id=rme_id)
    try:
        rme = rme_service.rejeitar(db, rme=rme, obj_in=rejeicao_in, aprovador=current_user, request=request)
        db.commit()
        db.refresh(rme)
        return rme
    except HTTPException:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Erro inesperado rejeitando o RME {rme_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao rejeitar o RME.")


@router.get("/{rme_id}/pdf",
            dependencies=[Depends(deps.PermissionChecker([PERM_VER_RME]))],
            summary="Baixar PDF do RME")
async def download_rme_pdf(rme_id: PyUUID, db: Session = Depends(deps.get_db)) -> Response:
    rme = rme_service.get_or_404(db, id=rme_id)
    try:
        conteudo = await rme_service.obter_pdf(db, rme=rme)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Erro ao gerar o PDF do RME {rme_id}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erro interno do servidor ao gerar o PDF do RME.")
    numero = rme.ticket.numero_ticket if rme.ticket else str(rme.id)
    return Response(
        content=conteudo,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="RME_{numero}.pdf"'},
    )
