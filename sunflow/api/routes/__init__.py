from fastapi import APIRouter

from . import auth, usuarios, papeis_permissoes, clientes, prestadores, tecnicos
from . import equipamentos, insumos, tickets, ordens_servico, agenda, rme, rotas
from . import presenca, notificacoes, dashboard, auditoria, exportacao

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(usuarios.router, prefix="/usuarios", tags=["Usuários"])
api_router.include_router(papeis_permissoes.router, prefix="/gestao", tags=["Papéis e Permissões"])
api_router.include_router(clientes.router, prefix="/clientes", tags=["Clientes"])
api_router.include_router(prestadores.router, prefix="/prestadores", tags=["Prestadores"])
api_router.include_router(tecnicos.router, prefix="/tecnicos", tags=["Técnicos"])
api_router.include_router(equipamentos.router, prefix="/equipamentos", tags=["Equipamentos"])
api_router.include_router(insumos.router, prefix="/insumos", tags=["Insumos e Estoque"])
api_router.include_router(tickets.router, prefix="/tickets", tags=["Tickets"])
api_router.include_router(ordens_servico.router, prefix="/ordens-servico", tags=["Ordens de Serviço"])
api_router.include_router(agenda.router, prefix="/agenda", tags=["Agenda"])
api_router.include_router(rme.router, prefix="/rme", tags=["RME"])
api_router.include_router(rotas.router, prefix="/rotas", tags=["Rotas"])
api_router.include_router(presenca.router, prefix="/presenca", tags=["Presença"])
api_router.include_router(notificacoes.router, prefix="/notificacoes", tags=["Notificações"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(auditoria.router, prefix="/auditoria", tags=["Auditoria"])
api_router.include_router(exportacao.router, prefix="/exportacao", tags=["Exportação"])
