"""
Stored document model.

Every entity (artwork, show, location, artist, queued mail) is one row:
the collection name and id form the key, the body is a schemaless JSON
payload, and `version` enables optimistic locking of read-modify-write
cycles on the membership arrays.
"""

from sqlalchemy import JSON, CheckConstraint, Column, Index, Integer, String

from artspace.db.base import Base, TimestampMixin


class Document(Base, TimestampMixin):
    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    id = Column(String(128), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("version > 0", name="check_document_version_positive"),
        Index("ix_documents_collection", "collection"),
    )

    def __repr__(self) -> str:
        return f"<Document({self.collection}/{self.id}, version={self.version})>"
