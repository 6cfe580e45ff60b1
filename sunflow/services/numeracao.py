import logging

from sqlalchemy.orm import Session
from sqlalchemy import select

from sunflow.core.datas import hoje_local
from sunflow.models.sequencia_documento import SequenciaDocumento

logger = logging.getLogger(__name__)

SEQ_TICKET = "TKT"
SEQ_ORDEM_SERVICO = "OS"


def proximo_numero(db: Session, prefixo: str) -> str:
    """
    Reserva o próximo número do ano para o prefixo: '{prefixo}-{AAAA}-{seq:05d}'.
    A linha do contador fica bloqueada até o fim da transação. NÃO faz commit.
    """
    ano = hoje_local().year
    statement = (
        select(SequenciaDocumento)
        .where(SequenciaDocumento.nome == prefixo, SequenciaDocumento.ano == ano)
        .with_for_update()
    )
    seq = db.execute(statement).scalar_one_or_none()
    if seq is None:
        seq = SequenciaDocumento(nome=prefixo, ano=ano, valor=0)
        db.add(seq)
    seq.valor = (seq.valor or 0) + 1
    db.flush()
    numero = f"{prefixo}-{ano}-{seq.valor:05d}"
    logger.debug(f"Número reservado: {numero}")
    return numero
