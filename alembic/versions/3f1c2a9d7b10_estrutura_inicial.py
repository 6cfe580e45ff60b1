"""
Estrutura inicial do SunFlow

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-18 09:12:40.118203

Cria todas as tabelas. Permissões e papéis padrão são carregados por
`scripts/create_superuser.py` (ou `manage_cli.py seed`).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from sunflow.core.config import settings

# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCHEMA = settings.DB_SCHEMA or None


def _ref(coluna: str) -> str:
    return f"{SCHEMA}.{coluna}" if SCHEMA else coluna


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _index(tabela: str, *colunas: str, unique: bool = False):
    op.create_index(op.f(f"ix_{tabela}_{colunas[0]}"), tabela, list(colunas), unique=unique, schema=SCHEMA)


def upgrade() -> None:
    # === Acesso ===
    op.create_table('papeis',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('nome', sa.String(length=100), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_papeis')),
        schema=SCHEMA
    )
    _index('papeis', 'nome', unique=True)

    op.create_table('permissoes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('nome', sa.String(length=100), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_permissoes')),
        schema=SCHEMA
    )
    _index('permissoes', 'nome', unique=True)

    op.create_table('usuarios',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('nome_usuario', sa.String(length=100), nullable=False),
        sa.Column('nome_completo', sa.String(length=200), nullable=True),
        sa.Column('senha', sa.String(), nullable=False),
        sa.Column('papel_id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('telefone', sa.String(length=30), nullable=True),
        sa.Column('tentativas_falhas', sa.Integer(), nullable=False),
        sa.Column('bloqueado', sa.Boolean(), nullable=False),
        sa.Column('ativo', sa.Boolean(), nullable=False),
        sa.Column('ultimo_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('requer_troca_senha', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['papel_id'], [_ref('papeis.id')], name=op.f('fk_usuarios_papel_id_papeis')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_usuarios')),
        schema=SCHEMA
    )
    _index('usuarios', 'nome_usuario', unique=True)
    _index('usuarios', 'email', unique=True)
    _index('usuarios', 'papel_id')

    op.create_table('papeis_permissoes',
        sa.Column('papel_id', sa.Uuid(), nullable=False),
        sa.Column('permissao_id', sa.Uuid(), nullable=False),
        sa.Column('concedido_por', sa.Uuid(), nullable=True),
        sa.Column('data_concessao', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['papel_id'], [_ref('papeis.id')], name=op.f('fk_papeis_permissoes_papel_id_papeis'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['permissao_id'], [_ref('permissoes.id')], name=op.f('fk_papeis_permissoes_permissao_id_permissoes'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['concedido_por'], [_ref('usuarios.id')], name=op.f('fk_papeis_permissoes_concedido_por_usuarios'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('papel_id', 'permissao_id', name='pk_papeis_permissoes'),
        schema=SCHEMA
    )

    # === Cadastros ===
    op.create_table('clientes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('empresa', sa.String(length=255), nullable=False),
        sa.Column('cnpj_cpf', sa.String(length=18), nullable=False),
        sa.Column('endereco', sa.Text(), nullable=True),
        sa.Column('cidade', sa.String(length=120), nullable=True),
        sa.Column('estado', sa.String(length=2), nullable=True),
        sa.Column('cep', sa.String(length=9), nullable=True),
        sa.Column('telefone', sa.String(length=30), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('geocoded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('usuario_id', sa.Uuid(), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['usuario_id'], [_ref('usuarios.id')], name=op.f('fk_clientes_usuario_id_usuarios'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_clientes')),
        schema=SCHEMA
    )
    _index('clientes', 'empresa')
    _index('clientes', 'cnpj_cpf', unique=True)
    _index('clientes', 'cidade')
    _index('clientes', 'estado')
    _index('clientes', 'usuario_id')

    op.create_table('prestadores',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('nome', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('telefone', sa.String(length=30), nullable=True),
        sa.Column('cpf', sa.String(length=14), nullable=True),
        sa.Column('categoria', sa.String(length=30), nullable=False),
        sa.Column('especialidades', sa.JSON(), nullable=False),
        sa.Column('certificacoes', sa.JSON(), nullable=False),
        sa.Column('endereco', sa.Text(), nullable=True),
        sa.Column('cidade', sa.String(length=120), nullable=True),
        sa.Column('estado', sa.String(length=2), nullable=True),
        sa.Column('cep', sa.String(length=9), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_prestadores')),
        schema=SCHEMA
    )
    _index('prestadores', 'nome')
    _index('prestadores', 'cpf')
    _index('prestadores', 'categoria')
    _index('prestadores', 'ativo')

    op.create_table('tecnicos',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('nome', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('telefone', sa.String(length=30), nullable=True),
        sa.Column('especialidades', sa.JSON(), nullable=False),
        sa.Column('regiao_atuacao', sa.String(length=120), nullable=True),
        sa.Column('registro_profissional', sa.String(length=60), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=False),
        sa.Column('usuario_id', sa.Uuid(), nullable=True),
        sa.Column('prestador_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['usuario_id'], [_ref('usuarios.id')], name=op.f('fk_tecnicos_usuario_id_usuarios'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['prestador_id'], [_ref('prestadores.id')], name=op.f('fk_tecnicos_prestador_id_prestadores'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_tecnicos')),
        sa.UniqueConstraint('usuario_id', name=op.f('uq_tecnicos_usuario_id')),
        schema=SCHEMA
    )
    _index('tecnicos', 'nome')
    _index('tecnicos', 'ativo')
    _index('tecnicos', 'prestador_id')

    op.create_table('equipamentos',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('nome', sa.String(length=255), nullable=False),
        sa.Column('tipo', sa.String(length=30), nullable=False),
        sa.Column('modelo', sa.String(length=120), nullable=True),
        sa.Column('fabricante', sa.String(length=120), nullable=True),
        sa.Column('numero_serie', sa.String(length=120), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('localizacao', sa.Text(), nullable=True),
        sa.Column('data_instalacao', sa.Date(), nullable=True),
        sa.Column('garantia_ate', sa.Date(), nullable=True),
        sa.Column('capacidade', sa.Float(), nullable=True),
        sa.Column('tensao', sa.Float(), nullable=True),
        sa.Column('corrente', sa.Float(), nullable=True),
        sa.Column('cliente_id', sa.Uuid(), nullable=True),
        sa.Column('qr_code_data', sa.String(length=255), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cliente_id'], [_ref('clientes.id')], name=op.f('fk_equipamentos_cliente_id_clientes'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_equipamentos')),
        sa.UniqueConstraint('numero_serie', name=op.f('uq_equipamentos_numero_serie')),
        schema=SCHEMA
    )
    _index('equipamentos', 'nome')
    _index('equipamentos', 'tipo')
    _index('equipamentos', 'status')
    _index('equipamentos', 'cliente_id')

    op.create_table('insumos',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('nome', sa.String(length=255), nullable=False),
        sa.Column('categoria', sa.String(length=100), nullable=True),
        sa.Column('unidade', sa.String(length=20), nullable=False),
        sa.Column('quantidade', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('estoque_minimo', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('estoque_critico', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('preco', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('fornecedor', sa.String(length=255), nullable=True),
        sa.Column('localizacao', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_insumos')),
        schema=SCHEMA
    )
    _index('insumos', 'nome')
    _index('insumos', 'categoria')

    op.create_table('sequencias_documento',
        sa.Column('nome', sa.String(length=20), nullable=False),
        sa.Column('ano', sa.Integer(), nullable=False),
        sa.Column('valor', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('nome', 'ano', name=op.f('pk_sequencias_documento')),
        schema=SCHEMA
    )

    # === Tickets ===
    op.create_table('tickets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('numero_ticket', sa.String(length=20), nullable=False),
        sa.Column('titulo', sa.String(length=255), nullable=False),
        sa.Column('descricao', sa.Text(), nullable=True),
        sa.Column('cliente_id', sa.Uuid(), nullable=False),
        sa.Column('criado_por', sa.Uuid(), nullable=True),
        sa.Column('endereco_servico', sa.Text(), nullable=True),
        sa.Column('equipamento_tipo', sa.String(length=30), nullable=True),
        sa.Column('prioridade', sa.String(length=10), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('tecnico_responsavel_id', sa.Uuid(), nullable=True),
        sa.Column('data_abertura', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('data_vencimento', sa.Date(), nullable=True),
        sa.Column('data_inicio_execucao', sa.DateTime(timezone=True), nullable=True),
        sa.Column('data_conclusao', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tempo_estimado', sa.Numeric(precision=6, scale=2), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('geocoded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('anexos', sa.JSON(), nullable=False),
        sa.Column('can_create_rme', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['cliente_id'], [_ref('clientes.id')], name=op.f('fk_tickets_cliente_id_clientes'), ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['criado_por'], [_ref('usuarios.id')], name=op.f('fk_tickets_criado_por_usuarios'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['tecnico_responsavel_id'], [_ref('tecnicos.id')], name=op.f('fk_tickets_tecnico_responsavel_id_tecnicos'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_tickets')),
        schema=SCHEMA
    )
    _index('tickets', 'numero_ticket', unique=True)
    _index('tickets', 'cliente_id')
    _index('tickets', 'prioridade')
    _index('tickets', 'status')
    _index('tickets', 'tecnico_responsavel_id')
    _index('tickets', 'data_vencimento')
    _index('tickets', 'created_at')

    op.create_table('status_historico',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('ticket_id', sa.Uuid(), nullable=False),
        sa.Column('status_anterior', sa.String(length=30), nullable=True),
        sa.Column('status_novo', sa.String(length=30), nullable=False),
        sa.Column('alterado_por', sa.Uuid(), nullable=True),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['ticket_id'], [_ref('tickets.id')], name=op.f('fk_status_historico_ticket_id_tickets'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['alterado_por'], [_ref('usuarios.id')], name=op.f('fk_status_historico_alterado_por_usuarios'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_status_historico')),
        schema=SCHEMA
    )
    _index('status_historico', 'ticket_id')

    op.create_table('aprovacoes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('ticket_id', sa.Uuid(), nullable=False),
        sa.Column('aprovador_id', sa.Uuid(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('observacoes', sa.Text(), nullable=True),
        sa.Column('data_aprovacao', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['ticket_id'], [_ref('tickets.id')], name=op.f('fk_aprovacoes_ticket_id_tickets'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['aprovador_id'], [_ref('usuarios.id')], name=op.f('fk_aprovacoes_aprovador_id_usuarios'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_aprovacoes')),
        schema=SCHEMA
    )
    _index('aprovacoes', 'ticket_id')

    # === Ordens de serviço ===
    op.create_table('ordens_servico',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('numero_os', sa.String(length=20), nullable=False),
        sa.Column('ticket_id', sa.Uuid(), nullable=False),
        sa.Column('tecnico_id', sa.Uuid(), nullable=True),
        sa.Column('data_emissao', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('data_programada', sa.Date(), nullable=True),
        sa.Column('hora_inicio', sa.Time(), nullable=True),
        sa.Column('hora_fim', sa.Time(), nullable=True),
        sa.Column('duracao_estimada_min', sa.Integer(), nullable=True),
        sa.Column('pdf_url', sa.String(length=500), nullable=True),
        sa.Column('qr_code', sa.String(length=255), nullable=True),
        sa.Column('calendar_invite_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('calendar_invite_recipients', sa.JSON(), nullable=False),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('presence_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('presence_confirmed_by', sa.String(length=255), nullable=True),
        sa.Column('email_error_log', sa.JSON(), nullable=False),
        sa.Column('observacoes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['ticket_id'], [_ref('tickets.id')], name=op.f('fk_ordens_servico_ticket_id_tickets'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tecnico_id'], [_ref('tecnicos.id')], name=op.f('fk_ordens_servico_tecnico_id_tecnicos'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_ordens_servico')),
        sa.UniqueConstraint('ticket_id', name=op.f('uq_ordens_servico_ticket_id')),
        schema=SCHEMA
    )
    _index('ordens_servico', 'numero_os', unique=True)
    _index('ordens_servico', 'tecnico_id')
    _index('ordens_servico', 'data_programada')
    _index('ordens_servico', 'created_at')

    op.create_table('presenca_tokens',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('ordem_servico_id', sa.Uuid(), nullable=False),
        sa.Column('tecnico_id', sa.Uuid(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['ordem_servico_id'], [_ref('ordens_servico.id')], name=op.f('fk_presenca_tokens_ordem_servico_id_ordens_servico'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tecnico_id'], [_ref('tecnicos.id')], name=op.f('fk_presenca_tokens_tecnico_id_tecnicos'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_presenca_tokens')),
        schema=SCHEMA
    )
    _index('presenca_tokens', 'token', unique=True)
    _index('presenca_tokens', 'ordem_servico_id')

    op.create_table('presenca_tentativas',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('ordem_servico_id', sa.Uuid(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=False),
        sa.Column('sucesso', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_presenca_tentativas')),
        schema=SCHEMA
    )
    _index('presenca_tentativas', 'ordem_servico_id')
    _index('presenca_tentativas', 'ip_address')
    _index('presenca_tentativas', 'created_at')

    op.create_table('email_retry_queue',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email_type', sa.String(length=30), nullable=False),
        sa.Column('ordem_servico_id', sa.Uuid(), nullable=True),
        sa.Column('recipients', sa.JSON(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('attempt_count', sa.Integer(), nullable=False),
        sa.Column('max_attempts', sa.Integer(), nullable=False),
        sa.Column('next_retry_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('last_attempt_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['ordem_servico_id'], [_ref('ordens_servico.id')], name=op.f('fk_email_retry_queue_ordem_servico_id_ordens_servico'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_email_retry_queue')),
        schema=SCHEMA
    )
    _index('email_retry_queue', 'email_type')
    _index('email_retry_queue', 'ordem_servico_id')
    _index('email_retry_queue', 'status')
    _index('email_retry_queue', 'next_retry_at')

    # === RME e estoque ===
    op.create_table('rme_relatorios',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('ticket_id', sa.Uuid(), nullable=False),
        sa.Column('ordem_servico_id', sa.Uuid(), nullable=False),
        sa.Column('tecnico_id', sa.Uuid(), nullable=True),
        sa.Column('equipamento_id', sa.Uuid(), nullable=True),
        sa.Column('data_execucao', sa.Date(), nullable=False),
        sa.Column('data_preenchimento', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('condicoes_encontradas', sa.Text(), nullable=True),
        sa.Column('servicos_executados', sa.Text(), nullable=False),
        sa.Column('testes_realizados', sa.Text(), nullable=True),
        sa.Column('observacoes_tecnicas', sa.Text(), nullable=True),
        sa.Column('materiais_utilizados', sa.JSON(), nullable=False),
        sa.Column('medicoes_eletricas', sa.JSON(), nullable=False),
        sa.Column('fotos_antes', sa.JSON(), nullable=False),
        sa.Column('fotos_depois', sa.JSON(), nullable=False),
        sa.Column('anexos_tecnicos', sa.JSON(), nullable=False),
        sa.Column('assinatura_tecnico', sa.Text(), nullable=True),
        sa.Column('assinatura_cliente', sa.Text(), nullable=True),
        sa.Column('nome_cliente_assinatura', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('status_aprovacao', sa.String(length=20), nullable=False),
        sa.Column('aprovado_por', sa.Uuid(), nullable=True),
        sa.Column('data_aprovacao', sa.DateTime(timezone=True), nullable=True),
        sa.Column('observacoes_aprovacao', sa.Text(), nullable=True),
        sa.Column('pdf_url', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['ticket_id'], [_ref('tickets.id')], name=op.f('fk_rme_relatorios_ticket_id_tickets'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['ordem_servico_id'], [_ref('ordens_servico.id')], name=op.f('fk_rme_relatorios_ordem_servico_id_ordens_servico'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tecnico_id'], [_ref('tecnicos.id')], name=op.f('fk_rme_relatorios_tecnico_id_tecnicos'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['equipamento_id'], [_ref('equipamentos.id')], name=op.f('fk_rme_relatorios_equipamento_id_equipamentos'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['aprovado_por'], [_ref('usuarios.id')], name=op.f('fk_rme_relatorios_aprovado_por_usuarios'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_rme_relatorios')),
        sa.UniqueConstraint('ordem_servico_id', name=op.f('uq_rme_relatorios_ordem_servico_id')),
        schema=SCHEMA
    )
    _index('rme_relatorios', 'ticket_id')
    _index('rme_relatorios', 'tecnico_id')
    _index('rme_relatorios', 'status')
    _index('rme_relatorios', 'status_aprovacao')
    _index('rme_relatorios', 'created_at')

    op.create_table('movimentacoes_insumo',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('insumo_id', sa.Uuid(), nullable=False),
        sa.Column('tipo', sa.String(length=20), nullable=False),
        sa.Column('quantidade', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('saldo_resultante', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('motivo', sa.Text(), nullable=True),
        sa.Column('responsavel_id', sa.Uuid(), nullable=True),
        sa.Column('rme_id', sa.Uuid(), nullable=True),
        sa.Column('data_movimentacao', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['insumo_id'], [_ref('insumos.id')], name=op.f('fk_movimentacoes_insumo_insumo_id_insumos'), ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['responsavel_id'], [_ref('usuarios.id')], name=op.f('fk_movimentacoes_insumo_responsavel_id_usuarios'), ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['rme_id'], [_ref('rme_relatorios.id')], name=op.f('fk_movimentacoes_insumo_rme_id_rme_relatorios'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_movimentacoes_insumo')),
        schema=SCHEMA
    )
    _index('movimentacoes_insumo', 'insumo_id')
    _index('movimentacoes_insumo', 'tipo')
    _index('movimentacoes_insumo', 'rme_id')
    _index('movimentacoes_insumo', 'data_movimentacao')

    op.create_table('rotas_otimizadas',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tecnico_id', sa.Uuid(), nullable=False),
        sa.Column('data_rota', sa.Date(), nullable=False),
        sa.Column('geometry', sa.JSON(), nullable=True),
        sa.Column('optimization_method', sa.String(length=20), nullable=False),
        sa.Column('distance_km', sa.Float(), nullable=False),
        sa.Column('duration_minutes', sa.Float(), nullable=False),
        sa.Column('waypoints_order', sa.JSON(), nullable=False),
        sa.Column('ticket_ids', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tecnico_id'], [_ref('tecnicos.id')], name=op.f('fk_rotas_otimizadas_tecnico_id_tecnicos'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_rotas_otimizadas')),
        sa.UniqueConstraint('tecnico_id', 'data_rota', name='uq_rotas_otimizadas_tecnico_data'),
        schema=SCHEMA
    )
    _index('rotas_otimizadas', 'tecnico_id')
    _index('rotas_otimizadas', 'data_rota')

    # === Notificações e auditoria ===
    op.create_table('notificacoes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('usuario_id', sa.Uuid(), nullable=False),
        sa.Column('titulo', sa.String(length=255), nullable=False),
        sa.Column('mensagem', sa.Text(), nullable=False),
        sa.Column('tipo', sa.String(length=20), nullable=False),
        sa.Column('lida', sa.Boolean(), nullable=False),
        sa.Column('link', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('data_leitura', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['usuario_id'], [_ref('usuarios.id')], name=op.f('fk_notificacoes_usuario_id_usuarios'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_notificacoes')),
        schema=SCHEMA
    )
    _index('notificacoes', 'usuario_id')
    _index('notificacoes', 'tipo')
    _index('notificacoes', 'lida')
    _index('notificacoes', 'created_at')

    op.create_table('audit_log',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('table_name', sa.String(length=100), nullable=False),
        sa.Column('record_id', sa.String(length=64), nullable=True),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('old_data', sa.JSON(), nullable=True),
        sa.Column('new_data', sa.JSON(), nullable=True),
        sa.Column('usuario_id', sa.Uuid(), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['usuario_id'], [_ref('usuarios.id')], name=op.f('fk_audit_log_usuario_id_usuarios'), ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_audit_log')),
        schema=SCHEMA
    )
    _index('audit_log', 'table_name')
    _index('audit_log', 'record_id')
    _index('audit_log', 'action')
    _index('audit_log', 'usuario_id')
    _index('audit_log', 'created_at')


def downgrade() -> None:
    for tabela in (
        'audit_log', 'notificacoes', 'rotas_otimizadas', 'movimentacoes_insumo', 'rme_relatorios',
        'email_retry_queue', 'presenca_tentativas', 'presenca_tokens', 'ordens_servico',
        'aprovacoes', 'status_historico', 'tickets', 'sequencias_documento', 'insumos',
        'equipamentos', 'tecnicos', 'prestadores', 'clientes', 'papeis_permissoes',
        'usuarios', 'permissoes', 'papeis',
    ):
        op.drop_table(tabela, schema=SCHEMA)
