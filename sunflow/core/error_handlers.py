import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request, status, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, NoResultFound

# Códigos SQLSTATE do PostgreSQL
PGCODE_UNIQUE_VIOLATION = "23505"
PGCODE_FOREIGN_KEY_VIOLATION = "23503"
PGCODE_CHECK_VIOLATION = "23514"
PGCODE_NOT_NULL_VIOLATION = "23502"

# Restrições únicas conhecidas -> mensagem para o usuário
UNIQUE_CONSTRAINT_MESSAGES = {
    "uq_usuarios_nome_usuario": "Nome de usuário já cadastrado.",
    "uq_usuarios_email": "E-mail já cadastrado.",
    "uq_clientes_cnpj_cpf": "Já existe um cliente com este CNPJ/CPF.",
    "uq_equipamentos_numero_serie": "Número de série já cadastrado.",
    "uq_tickets_numero_ticket": "Número de ticket já utilizado.",
    "uq_ordens_servico_numero_os": "Número de OS já utilizado.",
    "uq_ordens_servico_ticket_id": "Já existe uma ordem de serviço para este ticket.",
    "uq_papeis_nome": "Já existe um papel com este nome.",
    "uq_permissoes_nome": "Já existe uma permissão com este nome.",
}

logger = logging.getLogger(__name__)


def _sqlstate(original_exc: Optional[BaseException]) -> Optional[str]:
    if original_exc is None:
        return None
    return getattr(original_exc, "sqlstate", None) or getattr(original_exc, "pgcode", None)


async def validation_exception_handler(request: Request, exc: Exception):
    """
    Handler para erros de validação do Pydantic nas requisições.
    """
    if not isinstance(exc, RequestValidationError):
        return await generic_exception_handler(request, exc)

    error_details = []
    for error in exc.errors():
        field_loc = error.get("loc", ["body"])
        if field_loc and field_loc[0] == 'body' and len(field_loc) > 1:
            field = " -> ".join(map(str, field_loc[1:]))
        else:
            field = " -> ".join(map(str, field_loc))
        message = error.get("msg", "Erro de validação")
        error_details.append({"field": field, "message": message})
    logger.warning(f"Erro de validação na requisição: {request.method} {request.url} - Erros: {error_details}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Erro de validação nos dados de entrada.", "errors": error_details},
    )

async def http_exception_handler(request: Request, exc: Exception):
    """
    Handler para HTTPException lançadas explicitamente pela aplicação.
    """
    if not isinstance(exc, HTTPException):
        return await generic_exception_handler(request, exc)

    log_message = f"HTTPException - Status: {exc.status_code}, Detail: {exc.detail}, Request: {request.method} {request.url}"
    if exc.status_code >= 500:
        logger.error(log_message)
    elif exc.status_code >= 400:
        logger.warning(log_message)
    else:
        logger.info(log_message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )

async def database_exception_handler(request: Request, exc: Exception):
    """
    Handler para erros de banco de dados (SQLAlchemy e driver).
    Reconhece SQLSTATE do PostgreSQL e, na falta dele, o texto da mensagem.
    """
    if not isinstance(exc, SQLAlchemyError):
        return await generic_exception_handler(request, exc)

    original_exc = getattr(exc, 'orig', None)
    pgcode = _sqlstate(original_exc)
    constraint_name = None
    diag = getattr(original_exc, 'diag', None)
    if diag is not None:
        constraint_name = getattr(diag, 'constraint_name', None)
    message = str(original_exc if original_exc else exc).lower()

    logger.error(
        f"Erro de banco - Tipo: {type(original_exc).__name__ if original_exc else type(exc).__name__}, "
        f"SQLSTATE: {pgcode}, Constraint: '{constraint_name}', Mensagem: '{message}', "
        f"Request: {request.method} {request.url}",
        exc_info=True
    )

    if pgcode == PGCODE_UNIQUE_VIOLATION or (isinstance(exc, IntegrityError) and "unique constraint" in message):
        user_message = UNIQUE_CONSTRAINT_MESSAGES.get(constraint_name or "")
        if not user_message:
            user_message = f"Conflito: já existe um registro com dados que devem ser únicos (restrição: {constraint_name or 'desconhecida'})."
        status_code = status.HTTP_409_CONFLICT
    elif pgcode == PGCODE_FOREIGN_KEY_VIOLATION or (isinstance(exc, IntegrityError) and "foreign key constraint" in message):
        user_message = f"Erro de referência: o registro vinculado não existe (restrição: {constraint_name or 'desconhecida'})."
        status_code = status.HTTP_404_NOT_FOUND
    elif pgcode == PGCODE_NOT_NULL_VIOLATION or (isinstance(exc, IntegrityError) and ("not-null" in message or "not null" in message)):
        column_name = getattr(diag, 'column_name', None) or "desconhecido"
        user_message = f"Erro de dados: o campo '{column_name}' não pode ser nulo."
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif pgcode == PGCODE_CHECK_VIOLATION or (isinstance(exc, IntegrityError) and "check constraint" in message):
        user_message = f"Os dados informados violam uma regra de negócio (restrição: {constraint_name or 'desconhecida'})."
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, IntegrityError):
        user_message = "Erro de integridade no banco de dados. Verifique os dados."
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, NoResultFound):
        user_message = "O recurso solicitado não foi encontrado."
        status_code = status.HTTP_404_NOT_FOUND
    else:
        logger.error(f"Erro de banco não mapeado: {type(exc).__name__} - {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Ocorreu um erro interno ao processar a solicitação no banco de dados."},
        )

    logger.info(f"Erro de banco mapeado para Status={status_code}, Detail='{user_message}'")
    return JSONResponse(status_code=status_code, content={"detail": user_message})


async def generic_exception_handler(request: Request, exc: Exception):
    """
    Handler genérico para qualquer exceção não capturada pelos demais.
    """
    logger.critical(
        f"Exceção não tratada: {type(exc).__name__} - {exc}, Request: {request.method} {request.url}\n{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Ocorreu um erro interno inesperado na aplicação."},
    )

def register_error_handlers(app: FastAPI):
    """Registra os handlers de exceção personalizados na aplicação FastAPI."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    logger.info("Handlers de erro personalizados registrados.")
