import logging
from typing import Dict, List, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from sunflow.models.rme_checklist_item import RMEChecklistItem
from sunflow.models.rme_relatorio import RMERelatorio
from sunflow.schemas.enums import CategoriaChecklistEnum, RMEStatusAprovacaoEnum
from sunflow.schemas.rme import RMEChecklistItemUpdate, RMEChecklistLote
from .base_service import BaseService

logger = logging.getLogger(__name__)

# Catálogo copiado para cada RME novo: categoria -> [(item_key, label)]
CATALOGO_CHECKLIST: Dict[str, List[Tuple[str, str]]] = {
    CategoriaChecklistEnum.CONEXOES.value: [
        ("cabos_cc", "Cabeamento CC sem danos ou ressecamento"),
        ("conectores_mc4", "Conectores MC4 firmes e sem aquecimento"),
        ("aterramento", "Aterramento das estruturas verificado"),
        ("string_box", "String box inspecionada"),
    ],
    CategoriaChecklistEnum.ELETRICA.value: [
        ("tensao_strings", "Tensão das strings medida"),
        ("corrente_strings", "Corrente das strings medida"),
        ("disjuntores_dps", "Disjuntores e DPS verificados"),
        ("inversor_alarmes", "Inversor sem alarmes ativos"),
    ],
    CategoriaChecklistEnum.INTERNET.value: [
        ("datalogger", "Datalogger comunicando"),
        ("roteador", "Roteador e sinal Wi-Fi operando"),
        ("monitoramento", "Usina visível no portal de monitoramento"),
    ],
    CategoriaChecklistEnum.FERRAMENTAS.value: [
        ("multimetro", "Multímetro"),
        ("alicate_amperimetro", "Alicate amperímetro"),
        ("jogo_chaves", "Jogo de chaves isoladas"),
        ("escada", "Escada"),
        ("kit_limpeza", "Kit de limpeza (escova, rodo e água desmineralizada)"),
    ],
    CategoriaChecklistEnum.EPIS.value: [
        ("capacete", "Capacete com jugular"),
        ("luvas_isolantes", "Luvas isolantes"),
        ("oculos", "Óculos de proteção"),
        ("botina", "Botina de segurança"),
        ("cinto_paraquedista", "Cinto de segurança tipo paraquedista"),
        ("protetor_solar", "Protetor solar"),
    ],
    CategoriaChecklistEnum.MEDIDAS_PREVENTIVAS.value: [
        ("desenergizacao", "Desenergização do sistema"),
        ("bloqueio_etiquetagem", "Bloqueio e etiquetagem"),
        ("ausencia_tensao", "Verificação de ausência de tensão"),
        ("sinalizacao_area", "Sinalização da área de trabalho"),
    ],
}

ROTULOS_CATEGORIA = {
    CategoriaChecklistEnum.CONEXOES.value: "Conexões",
    CategoriaChecklistEnum.ELETRICA.value: "Elétrica",
    CategoriaChecklistEnum.INTERNET.value: "Internet",
    CategoriaChecklistEnum.FERRAMENTAS.value: "Ferramentas",
    CategoriaChecklistEnum.EPIS.value: "EPIs",
    CategoriaChecklistEnum.MEDIDAS_PREVENTIVAS.value: "Medidas preventivas",
}


class RMEChecklistService(BaseService[RMEChecklistItem, BaseModel, RMEChecklistItemUpdate]):
    """Itens de checklist do RME. Os métodos de escrita NÃO fazem commit."""
    label = "Item de checklist"

    def _garantir_editavel(self, rme: RMERelatorio):
        if rme.status_aprovacao == RMEStatusAprovacaoEnum.APROVADO.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="RME aprovado não pode ser alterado.")

    def popular(self, db: Session, *, rme: RMERelatorio) -> List[RMEChecklistItem]:
        """Copia para o RME os itens do catálogo que ele ainda não tem. Idempotente."""
        existentes = {(item.categoria, item.item_key) for item in rme.checklist_items}
        novos = 0
        for categoria, itens in CATALOGO_CHECKLIST.items():
            for item_key, label in itens:
                if (categoria, item_key) in existentes:
                    continue
                rme.checklist_items.append(
                    self.model(categoria=categoria, item_key=item_key, label=label, checked=False)
                )
                novos += 1
        db.flush()
        if novos:
            logger.debug(f"{novos} item(ns) de checklist adicionados ao RME {rme.id}.")
        return rme.checklist_items

    def _item_do_rme(self, db: Session, *, rme: RMERelatorio, item_id: UUID) -> RMEChecklistItem:
        item = self.get(db, id=item_id)
        if not item or item.rme_id != rme.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Item de checklist {item_id} não encontrado no RME {rme.id}."
            )
        return item

    def atualizar_item(
        self, db: Session, *, rme: RMERelatorio, item_id: UUID, obj_in: RMEChecklistItemUpdate
    ) -> RMEChecklistItem:
        self._garantir_editavel(rme)
        item = self._item_do_rme(db, rme=rme, item_id=item_id)
        item.checked = obj_in.checked
        db.add(item)
        db.flush()
        return item

    def atualizar_lote(self, db: Session, *, rme: RMERelatorio, obj_in: RMEChecklistLote) -> List[RMEChecklistItem]:
        """
        Marca todos os itens das `categorias` informadas e depois aplica as
        marcações individuais de `itens`, que prevalecem.
        """
        self._garantir_editavel(rme)
        categorias = {CategoriaChecklistEnum(c).value for c in obj_in.categorias}
        for item in rme.checklist_items:
            if item.categoria in categorias:
                item.checked = True
        for marcacao in obj_in.itens:
            item = self._item_do_rme(db, rme=rme, item_id=marcacao.id)
            item.checked = marcacao.checked
        db.flush()
        return rme.checklist_items


def agrupar_por_categoria(itens: List[RMEChecklistItem]) -> Dict[str, List[RMEChecklistItem]]:
    """Itens agrupados na ordem das categorias do catálogo."""
    grupos: Dict[str, List[RMEChecklistItem]] = {}
    for categoria in CATALOGO_CHECKLIST:
        da_categoria = [i for i in itens if i.categoria == categoria]
        if da_categoria:
            grupos[categoria] = da_categoria
    return grupos


rme_checklist_service = RMEChecklistService(RMEChecklistItem)
