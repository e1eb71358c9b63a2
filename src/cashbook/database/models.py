"""SQLAlchemy models for the cashbook local store."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    String,
    DateTime,
    JSON,
    PrimaryKeyConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class StoredRecord(Base):
    """One opaque record in one entity collection."""

    __tablename__ = "records"

    entity_type = Column(String, nullable=False)
    record_id = Column(String, nullable=False)
    payload = Column(JSON, nullable=False)
    stored_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (PrimaryKeyConstraint("entity_type", "record_id", name="pk_records"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
