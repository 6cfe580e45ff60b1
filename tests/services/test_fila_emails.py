from datetime import timedelta
from unittest import mock

from sqlalchemy.orm import Session

from sunflow.core.datas import agora_utc, garantir_utc
from sunflow.models.email_retry import EmailRetry
from sunflow.schemas.enums import TipoEmailEnum
from sunflow.services.email_retry import email_retry_service, atraso_proxima_tentativa

PAYLOAD = {
    "subject": "Agendamento: OS-2026-00001 - Usina Solar Cerrado",
    "html": "<p>Convite</p>",
    "attachments": [{"filename": "convite.ics", "content": "BEGIN:VCALENDAR\r\nEND:VCALENDAR"}],
}


def _enfileirar(
    db: Session,
    atraso: timedelta = timedelta(seconds=-1),
    email_type: TipoEmailEnum = TipoEmailEnum.CALENDAR_INVITE,
    payload=PAYLOAD,
    **extra,
) -> EmailRetry:
    item = email_retry_service.enfileirar(
        db,
        email_type=email_type,
        recipients=["joao.tecnico@evolight.com.br"],
        payload=payload,
        atraso=atraso,
    )
    for campo, valor in extra.items():
        setattr(item, campo, valor)
    db.commit()
    db.refresh(item)
    return item


def test_atraso_exponencial():
    assert [atraso_proxima_tentativa(n) for n in (1, 2, 3)] == [
        timedelta(minutes=2), timedelta(minutes=4), timedelta(minutes=8)
    ]


def test_reenvio_com_sucesso(db: Session, resend_mock: mock.MagicMock):
    item = _enfileirar(db)
    resultado = email_retry_service.processar_fila(db)
    assert resultado == {"processados": 1, "sucesso": 1, "falhas": 0}
    assert item.status == "success"
    params = resend_mock.call_args.args[0]
    assert params["to"] == ["joao.tecnico@evolight.com.br"]
    assert params["attachments"][0]["filename"] == "convite.ics"


def test_item_futuro_nao_e_processado(db: Session, resend_mock: mock.MagicMock):
    _enfileirar(db, atraso=timedelta(minutes=5))
    assert email_retry_service.processar_fila(db) == {"processados": 0, "sucesso": 0, "falhas": 0}
    resend_mock.assert_not_called()


def test_falha_reagenda(db: Session, resend_mock: mock.MagicMock):
    resend_mock.side_effect = Exception("503 Service Unavailable")
    item = _enfileirar(db)
    resultado = email_retry_service.processar_fila(db)
    assert resultado == {"processados": 1, "sucesso": 0, "falhas": 1}
    assert item.status == "pending"
    assert item.attempt_count == 1
    assert "503" in item.last_error
    espera = garantir_utc(item.next_retry_at) - agora_utc()
    assert timedelta(minutes=1) < espera <= timedelta(minutes=2)


def test_falha_na_ultima_tentativa(db: Session, resend_mock: mock.MagicMock):
    resend_mock.side_effect = Exception("timeout")
    item = _enfileirar(db, attempt_count=4)
    email_retry_service.processar_fila(db)
    assert item.attempt_count == 5
    assert item.status == "failed"


def test_limite_do_lote(db: Session):
    for _ in range(3):
        _enfileirar(db)
    assert email_retry_service.processar_fila(db, limite=2)["processados"] == 2
    assert email_retry_service.processar_fila(db, limite=2)["processados"] == 1


def test_anexo_sem_conteudo_nao_bloqueia_o_lote(db: Session, resend_mock: mock.MagicMock):
    quebrado = _enfileirar(
        db,
        atraso=timedelta(minutes=-2),
        payload={**PAYLOAD, "attachments": [{"filename": "convite.ics"}]},
    )
    lembrete = _enfileirar(
        db,
        email_type=TipoEmailEnum.REMINDER,
        payload={"subject": "Lembrete: OS OS-2026-00001 agendada para amanhã", "html": "<p>Lembrete</p>"},
    )

    resultado = email_retry_service.processar_fila(db)

    assert resultado == {"processados": 2, "sucesso": 1, "falhas": 1}
    assert quebrado.status == "pending"
    assert quebrado.attempt_count == 1
    assert "content" in quebrado.last_error
    assert lembrete.status == "success"
    resend_mock.assert_called_once()
    assert resend_mock.call_args.args[0]["subject"].startswith("Lembrete:")


def test_erro_inesperado_no_item_mantem_os_demais(db: Session, resend_mock: mock.MagicMock):
    # payload que não é um objeto quebra a leitura do item antes do envio
    invalido = _enfileirar(db, atraso=timedelta(minutes=-2), payload=["sem", "assunto"], attempt_count=4)
    valido = _enfileirar(db)

    resultado = email_retry_service.processar_fila(db)

    assert resultado == {"processados": 2, "sucesso": 1, "falhas": 1}
    assert invalido.status == "failed"
    assert invalido.attempt_count == 5
    assert invalido.last_error
    assert valido.status == "success"
    assert resend_mock.call_count == 1
