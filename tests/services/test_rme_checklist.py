from datetime import date, time

from sqlalchemy.orm import Session

from sunflow.core.datas import hoje_local
from sunflow.models.ordem_servico import OrdemServico
from sunflow.schemas.enums import TicketStatusEnum
from sunflow.schemas.rme import RMECreate
from sunflow.services.pdf import _assinado_em, _intervalo
from sunflow.services.rme import rme_service, dia_da_semana
from sunflow.services.rme_checklist import CATALOGO_CHECKLIST, agrupar_por_categoria, rme_checklist_service


def _criar_rme(db: Session, os: OrdemServico, **extra):
    os.ticket.status = TicketStatusEnum.EM_EXECUCAO.value
    rme = rme_service.create(db, obj_in=RMECreate(
        ticket_id=os.ticket_id,
        ordem_servico_id=os.id,
        data_execucao=hoje_local(),
        servicos_executados="Limpeza dos módulos da fileira B.",
        **extra,
    ))
    db.commit()
    return rme


def test_popular_e_idempotente(db: Session, ordem_servico: OrdemServico):
    rme = _criar_rme(db, ordem_servico)
    total = sum(len(v) for v in CATALOGO_CHECKLIST.values())
    assert len(rme.checklist_items) == total

    rme.checklist_items[0].checked = True
    rme_checklist_service.popular(db, rme=rme)
    db.commit()
    db.refresh(rme)
    assert len(rme.checklist_items) == total
    assert sum(1 for i in rme.checklist_items if i.checked) == 1


def test_item_removido_do_rme_volta_ao_popular(db: Session, ordem_servico: OrdemServico):
    rme = _criar_rme(db, ordem_servico)
    removido = next(i for i in rme.checklist_items if i.item_key == "datalogger")
    rme.checklist_items.remove(removido)
    db.commit()

    rme_checklist_service.popular(db, rme=rme)
    assert [i.item_key for i in rme.checklist_items].count("datalogger") == 1


def test_agrupar_segue_a_ordem_do_catalogo(db: Session, ordem_servico: OrdemServico):
    rme = _criar_rme(db, ordem_servico)
    grupos = agrupar_por_categoria(list(reversed(rme.checklist_items)))
    assert list(grupos) == list(CATALOGO_CHECKLIST)


def test_horario_padrao_vem_da_os(db: Session, ordem_servico: OrdemServico):
    ordem_servico.hora_inicio = time(8, 0)
    ordem_servico.hora_fim = time(12, 0)
    rme = _criar_rme(db, ordem_servico, hora_fim=time(11, 15))
    assert (rme.hora_inicio, rme.hora_fim) == (time(8, 0), time(11, 15))


def test_dia_da_semana():
    assert dia_da_semana(date(2026, 10, 19)) == "Segunda-feira"
    assert dia_da_semana(date(2026, 10, 24)) == "Sábado"


def test_textos_do_pdf():
    assert _intervalo(time(7, 30), None) == "07:30 às --:--"
    assert _intervalo(None, None) is None
    assert _assinado_em({"nome": "Ana", "at": "2026-10-18T17:30:00Z"}) == "18/10/2026 14:30"
    assert _assinado_em({"nome": "Ana", "at": "ontem"}) == "ontem"
    assert _assinado_em(None) is None
