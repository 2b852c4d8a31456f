"""Initial migration

Revision ID: 001
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# (index name, content field, document type) for the native query engine
QUERY_INDEXES = [
    ('idx_documents_created_at', 'createdAt', None),
    ('idx_user_email', 'email', 'user'),
    ('idx_user_role', 'role', 'user'),
    ('idx_reservations_status', 'status', 'reservation'),
    ('idx_reservations_date', 'expectedArrivalTime', 'reservation'),
    ('idx_reservations_created_by', 'createdBy', 'reservation'),
    ('idx_logs_reservation_id', 'reservationId', 'log'),
]


def upgrade() -> None:
    # Create documents table: every entity, pointer and index document
    op.create_table(
        'documents',
        sa.Column('key', sa.String(255), primary_key=True),
        sa.Column('doc_type', sa.String(50)),
        sa.Column('content', postgresql.JSONB(), nullable=False),
    )
    op.create_index('ix_documents_doc_type', 'documents', ['doc_type'])

    # Expression indexes over the JSON content
    for name, field, doc_type in QUERY_INDEXES:
        where = sa.text(f"doc_type = '{doc_type}'") if doc_type else None
        op.create_index(
            name,
            'documents',
            [sa.text(f"(content ->> '{field}')")],
            postgresql_where=where,
        )


def downgrade() -> None:
    for name, _, _ in reversed(QUERY_INDEXES):
        op.drop_index(name, table_name='documents')
    op.drop_index('ix_documents_doc_type', table_name='documents')
    op.drop_table('documents')
