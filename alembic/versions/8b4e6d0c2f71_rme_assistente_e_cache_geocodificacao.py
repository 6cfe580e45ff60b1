"""
Campos do assistente de RME, checklist do RME e cache de geocodificação

Revision ID: 8b4e6d0c2f71
Revises: 3f1c2a9d7b10
Create Date: 2026-10-18 15:40:02.503117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from sunflow.core.config import settings

# revision identifiers, used by Alembic.
revision: str = '8b4e6d0c2f71'
down_revision: Union[str, None] = '3f1c2a9d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCHEMA = settings.DB_SCHEMA or None

COLUNAS_RME = [
    sa.Column('dia_semana', sa.String(length=20), nullable=True),
    sa.Column('nome_usina', sa.String(length=255), nullable=True),
    sa.Column('colaboracao', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
    sa.Column('numero_micro', sa.String(length=50), nullable=True),
    sa.Column('numero_inversor', sa.String(length=50), nullable=True),
    sa.Column('tipo_servico', sa.JSON(), server_default=sa.text("'[]'"), nullable=False),
    sa.Column('turno', sa.String(length=10), nullable=True),
    sa.Column('hora_inicio', sa.Time(), nullable=True),
    sa.Column('hora_fim', sa.Time(), nullable=True),
    sa.Column('imagens_postadas', sa.Boolean(), server_default=sa.false(), nullable=False),
    sa.Column('qtd_modulos_limpos', sa.Integer(), server_default=sa.text('0'), nullable=False),
    sa.Column('qtd_string_box', sa.Integer(), server_default=sa.text('0'), nullable=False),
    sa.Column('assinaturas', sa.JSON(), server_default=sa.text("'{}'"), nullable=False),
]


def _ref(coluna: str) -> str:
    return f"{SCHEMA}.{coluna}" if SCHEMA else coluna


def upgrade() -> None:
    for coluna in COLUNAS_RME:
        op.add_column('rme_relatorios', coluna, schema=SCHEMA)

    op.create_table('rme_checklist_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('rme_id', sa.Uuid(), nullable=False),
        sa.Column('categoria', sa.String(length=30), nullable=False),
        sa.Column('item_key', sa.String(length=60), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('checked', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['rme_id'], [_ref('rme_relatorios.id')], name=op.f('fk_rme_checklist_items_rme_id_rme_relatorios'), ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_rme_checklist_items')),
        sa.UniqueConstraint('rme_id', 'categoria', 'item_key', name='uq_rme_checklist_items_rme_categoria_item'),
        schema=SCHEMA
    )
    op.create_index(op.f('ix_rme_checklist_items_rme_id'), 'rme_checklist_items', ['rme_id'], unique=False, schema=SCHEMA)
    op.create_index(op.f('ix_rme_checklist_items_categoria'), 'rme_checklist_items', ['categoria'], unique=False, schema=SCHEMA)

    op.create_table('geocoding_cache',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('endereco_normalizado', sa.String(length=500), nullable=False),
        sa.Column('endereco_original', sa.String(length=500), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('endereco_formatado', sa.String(length=500), nullable=True),
        sa.Column('provedor', sa.String(length=20), nullable=False),
        sa.Column('cached_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_geocoding_cache')),
        schema=SCHEMA
    )
    op.create_index(op.f('ix_geocoding_cache_endereco_normalizado'), 'geocoding_cache', ['endereco_normalizado'], unique=True, schema=SCHEMA)
    op.create_index(op.f('ix_geocoding_cache_cached_at'), 'geocoding_cache', ['cached_at'], unique=False, schema=SCHEMA)


def downgrade() -> None:
    op.drop_table('geocoding_cache', schema=SCHEMA)
    op.drop_table('rme_checklist_items', schema=SCHEMA)
    for coluna in reversed(COLUNAS_RME):
        op.drop_column('rme_relatorios', coluna.name, schema=SCHEMA)
