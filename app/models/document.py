"""Document table: one row per key/value document"""

from sqlalchemy import Column, String, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

from app.config import settings

Base = declarative_base()


class Document(Base):
    """Opaque key -> JSON content, shared by every entity and index"""
    __tablename__ = settings.documents_table

    key = Column(String(255), primary_key=True)

    # Mirrors content["type"]; the native query engine filters on it
    doc_type = Column(String(50), index=True)

    content = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
