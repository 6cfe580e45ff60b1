import bcrypt
import logging

logger = logging.getLogger(__name__)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica se uma senha em texto puro corresponde ao hash bcrypt armazenado.

    Args:
        plain_password: senha em texto puro.
        hashed_password: hash armazenado (string).

    Returns:
        True se corresponderem, False caso contrário.
    """
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError as e:
        # checkpw lança ValueError quando o hash armazenado é inválido
        logger.error(f"Erro verificando senha (hash possivelmente inválido): {e}")
        return False


def get_password_hash(password: str) -> str:
    """Gera o hash bcrypt de uma senha."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')
