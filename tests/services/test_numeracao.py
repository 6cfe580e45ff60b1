from sqlalchemy.orm import Session

from sunflow.core.datas import hoje_local
from sunflow.services.numeracao import proximo_numero, SEQ_TICKET, SEQ_ORDEM_SERVICO


def test_sequencia_por_prefixo(db: Session):
    ano = hoje_local().year
    assert proximo_numero(db, SEQ_TICKET) == f"TKT-{ano}-00001"
    assert proximo_numero(db, SEQ_TICKET) == f"TKT-{ano}-00002"
    assert proximo_numero(db, SEQ_ORDEM_SERVICO) == f"OS-{ano}-00001"
    assert proximo_numero(db, SEQ_TICKET) == f"TKT-{ano}-00003"
