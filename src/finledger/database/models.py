"""SQLAlchemy models for the finledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    JSON,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Ledger account model."""

    __tablename__ = "accounts"

    id = Column(String(32), primary_key=True)
    name = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    category = Column(String, nullable=False)
    balance = Column(Numeric(14, 2), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    aliases = relationship(
        "AccountAlias",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="AccountAlias.position",
    )
    history = relationship(
        "HistoryEntry",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="HistoryEntry.position",
    )
    merged = relationship(
        "MergedAccount",
        back_populates="account",
        cascade="all, delete-orphan",
        order_by="MergedAccount.position",
    )


class AccountAlias(Base):
    """Previous name of an account, kept as a match key."""

    __tablename__ = "account_aliases"

    id = Column(Integer, primary_key=True)
    account_id = Column(String(32), ForeignKey("accounts.id"), nullable=False)
    name = Column(String, nullable=False)
    position = Column(Integer, nullable=False)

    account = relationship("Account", back_populates="aliases")


class HistoryEntry(Base):
    """Balance snapshot model."""

    __tablename__ = "history_entries"

    id = Column(Integer, primary_key=True)
    account_id = Column(String(32), ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    balance = Column(Numeric(14, 2), nullable=False)
    source = Column(String, nullable=False)
    position = Column(Integer, nullable=False)

    account = relationship("Account", back_populates="history")


class MergedAccount(Base):
    """Serialized snapshot of an account absorbed by a merge."""

    __tablename__ = "merged_accounts"

    id = Column(Integer, primary_key=True)
    account_id = Column(String(32), ForeignKey("accounts.id"), nullable=False)
    snapshot = Column(JSON, nullable=False)
    position = Column(Integer, nullable=False)

    account = relationship("Account", back_populates="merged")


class AuditLogEntry(Base):
    """Merge or unmerge recorded in the audit log."""

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True)
    action = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    account_id = Column(String(32), nullable=False)
    account_name = Column(String, nullable=False)
    # Not foreign keys: the log outlives the accounts it mentions
    related_ids = Column(JSON, nullable=False)
    related_names = Column(JSON, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
