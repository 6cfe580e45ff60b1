from datetime import date, datetime, time, timezone
from unittest import mock

from sqlalchemy.orm import Session

from sunflow.models import Cliente, OrdemServico, Tecnico, Ticket
from sunflow.services.calendario import (
    escapar_texto_ics, gerar_ics, montar_convite, destinatarios_os, enviar_convite,
    ACAO_CRIAR, ACAO_ATUALIZAR, ACAO_CANCELAR,
)


def _os_em_memoria(**extra) -> OrdemServico:
    ticket = Ticket(
        titulo="Inversor com falha de isolamento",
        endereco_servico="Fazenda Boa Vista, km 8",
        cliente=Cliente(empresa="Usina Solar Cerrado"),
    )
    dados = {
        "numero_os": "OS-2026-00042",
        "data_programada": date(2026, 3, 10),
        "hora_inicio": time(8, 0),
        "hora_fim": time(10, 30),
        "duracao_estimada_min": 150,
        **extra,
    }
    return OrdemServico(ticket=ticket, tecnico=Tecnico(nome="João da Silva", email="joao.tecnico@evolight.com.br"), **dados)


def test_escapar_texto_ics():
    assert escapar_texto_ics(None) == ""
    assert escapar_texto_ics("a;b,c\\d\ne") == r"a\;b\,c\\d\ne"


def test_destinatarios_sem_repeticao():
    os = _os_em_memoria()
    assert destinatarios_os(os) == ["joao.tecnico@evolight.com.br", "operacao@evolight.com.br"]
    os.tecnico.email = "OPERACAO@evolight.com.br"
    assert destinatarios_os(os) == ["OPERACAO@evolight.com.br"]


def test_gerar_ics_convite():
    os = _os_em_memoria()
    agora = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    ics = gerar_ics(os, ACAO_CRIAR, destinatarios_os(os), agora=agora)
    linhas = ics.split("\r\n")
    assert linhas[0] == "BEGIN:VCALENDAR"
    assert linhas[-1] == "END:VCALENDAR"
    assert "METHOD:REQUEST" in linhas
    assert "UID:os-OS-2026-00042@sunflow.grupoevolight.com.br" in linhas
    assert "DTSTAMP:20260301T120000Z" in linhas
    assert "DTSTART:20260310T080000" in linhas
    assert "DTEND:20260310T103000" in linhas
    assert "SEQUENCE:0" in linhas
    assert "STATUS:CONFIRMED" in linhas
    assert "LOCATION:Fazenda Boa Vista\\, km 8" in linhas
    assert "TRIGGER:-PT30M" in linhas
    assert any(l.startswith("ATTENDEE;CN=João da Silva") for l in linhas)


def test_gerar_ics_atualizacao_e_cancelamento():
    os = _os_em_memoria()
    atualizacao = gerar_ics(os, ACAO_ATUALIZAR, destinatarios_os(os))
    cancelamento = gerar_ics(os, ACAO_CANCELAR, destinatarios_os(os))
    assert "SEQUENCE:1" in atualizacao
    assert "METHOD:CANCEL" in cancelamento
    assert "STATUS:CANCELLED" in cancelamento
    # o UID é o mesmo para o calendário substituir o evento
    uid = "UID:os-OS-2026-00042@sunflow.grupoevolight.com.br"
    assert uid in atualizacao and uid in cancelamento


def test_montar_convite():
    os = _os_em_memoria()
    convite = montar_convite(os, ACAO_CRIAR, destinatarios_os(os))
    assert convite["subject"] == "Agendamento: OS-2026-00042 - Usina Solar Cerrado"
    assert "10/03/2026 às 08:00" in convite["html"]
    assert "150 minutos" in convite["html"]
    assert convite["attachments"][0]["filename"] == "convite.ics"

    cancelamento = montar_convite(os, ACAO_CANCELAR, destinatarios_os(os))
    assert cancelamento["subject"].startswith("Cancelamento:")


def test_convite_sem_horario_registra_erro(db: Session, ordem_servico: OrdemServico, resend_mock: mock.MagicMock):
    assert ordem_servico.data_programada is None
    assert enviar_convite(db, ordem_servico, ACAO_CRIAR) is False
    resend_mock.assert_not_called()
    assert ordem_servico.email_error_log[-1]["type"] == "calendar_invite"
    assert ordem_servico.calendar_invite_sent_at is None
