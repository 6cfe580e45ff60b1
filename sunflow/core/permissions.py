# =================================================================
# Papéis do sistema
# =================================================================

ADMIN_ROLE_NAME = "admin"
AREA_TECNICA_ROLE_NAME = "area_tecnica"
TECNICO_CAMPO_ROLE_NAME = "tecnico_campo"
CLIENTE_ROLE_NAME = "cliente"


# =================================================================
# Permissões do sistema
# =================================================================

# --- Administração ---
PERM_ADMINISTRAR_SISTEMA = "administrar_sistema"
PERM_ADMINISTRAR_USUARIOS = "administrar_usuarios"
PERM_ADMINISTRAR_PAPEIS = "administrar_papeis"
PERM_VER_AUDITORIA = "ver_auditoria"
PERM_VER_DASHBOARD = "ver_dashboard"
PERM_EXPORTAR_DADOS = "exportar_dados"

# --- Cadastros ---
PERM_VER_CLIENTES = "ver_clientes"
PERM_GERENCIAR_CLIENTES = "gerenciar_clientes"
PERM_IMPORTAR_CLIENTES = "importar_clientes"
PERM_VER_PRESTADORES = "ver_prestadores"
PERM_GERENCIAR_PRESTADORES = "gerenciar_prestadores"
PERM_VER_EQUIPAMENTOS = "ver_equipamentos"
PERM_GERENCIAR_EQUIPAMENTOS = "gerenciar_equipamentos"
PERM_VER_INSUMOS = "ver_insumos"
PERM_GERENCIAR_INSUMOS = "gerenciar_insumos"

# --- Tickets ---
PERM_VER_TICKETS = "ver_tickets"
PERM_CRIAR_TICKETS = "criar_tickets"
PERM_EDITAR_TICKETS = "editar_tickets"
PERM_APROVAR_TICKETS = "aprovar_tickets"

# --- Ordens de serviço e agenda ---
PERM_VER_OS = "ver_os"
PERM_GERAR_OS = "gerar_os"
PERM_AGENDAR_OS = "agendar_os"
PERM_CANCELAR_OS = "cancelar_os"
PERM_VER_CARGA_TRABALHO = "ver_carga_trabalho"

# --- RME ---
PERM_VER_RME = "ver_rme"
PERM_PREENCHER_RME = "preencher_rme"
PERM_APROVAR_RME = "aprovar_rme"

# --- Rotas ---
PERM_VER_ROTAS = "ver_rotas"
PERM_OTIMIZAR_ROTAS = "otimizar_rotas"


TODAS_PERMISSOES = [
    PERM_ADMINISTRAR_SISTEMA, PERM_ADMINISTRAR_USUARIOS, PERM_ADMINISTRAR_PAPEIS,
    PERM_VER_AUDITORIA, PERM_VER_DASHBOARD, PERM_EXPORTAR_DADOS,
    PERM_VER_CLIENTES, PERM_GERENCIAR_CLIENTES, PERM_IMPORTAR_CLIENTES,
    PERM_VER_PRESTADORES, PERM_GERENCIAR_PRESTADORES,
    PERM_VER_EQUIPAMENTOS, PERM_GERENCIAR_EQUIPAMENTOS,
    PERM_VER_INSUMOS, PERM_GERENCIAR_INSUMOS,
    PERM_VER_TICKETS, PERM_CRIAR_TICKETS, PERM_EDITAR_TICKETS, PERM_APROVAR_TICKETS,
    PERM_VER_OS, PERM_GERAR_OS, PERM_AGENDAR_OS, PERM_CANCELAR_OS, PERM_VER_CARGA_TRABALHO,
    PERM_VER_RME, PERM_PREENCHER_RME, PERM_APROVAR_RME,
    PERM_VER_ROTAS, PERM_OTIMIZAR_ROTAS,
]

# Permissões padrão de cada papel (usadas pelo script de carga inicial e pelos testes)
PERMISSOES_POR_PAPEL = {
    ADMIN_ROLE_NAME: list(TODAS_PERMISSOES),
    AREA_TECNICA_ROLE_NAME: [
        PERM_VER_DASHBOARD, PERM_EXPORTAR_DADOS,
        PERM_VER_CLIENTES, PERM_GERENCIAR_CLIENTES, PERM_IMPORTAR_CLIENTES,
        PERM_VER_PRESTADORES, PERM_GERENCIAR_PRESTADORES,
        PERM_VER_EQUIPAMENTOS, PERM_GERENCIAR_EQUIPAMENTOS,
        PERM_VER_INSUMOS, PERM_GERENCIAR_INSUMOS,
        PERM_VER_TICKETS, PERM_CRIAR_TICKETS, PERM_EDITAR_TICKETS, PERM_APROVAR_TICKETS,
        PERM_VER_OS, PERM_GERAR_OS, PERM_AGENDAR_OS, PERM_CANCELAR_OS, PERM_VER_CARGA_TRABALHO,
        PERM_VER_RME, PERM_APROVAR_RME,
        PERM_VER_ROTAS, PERM_OTIMIZAR_ROTAS,
    ],
    TECNICO_CAMPO_ROLE_NAME: [
        PERM_VER_DASHBOARD, PERM_VER_CLIENTES, PERM_VER_EQUIPAMENTOS, PERM_VER_INSUMOS,
        PERM_VER_TICKETS, PERM_VER_OS, PERM_VER_RME, PERM_PREENCHER_RME, PERM_VER_ROTAS,
    ],
    CLIENTE_ROLE_NAME: [
        PERM_VER_TICKETS, PERM_CRIAR_TICKETS, PERM_VER_EQUIPAMENTOS,
    ],
}
