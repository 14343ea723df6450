"""SQLAlchemy models: button definitions plus the catalogs OPTIONS reads from."""

from datetime import UTC, datetime
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Buttons ---
class CustomButton(Base):
    __tablename__ = "custom_buttons"
    # AUTOINCREMENT keeps sqlite from handing out the id of a deleted row again
    __table_args__ = (
        Index("ix_custom_buttons_applies_to", "applies_to_class", "applies_to_id"),
        {"sqlite_autoincrement": True},
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(36), unique=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, nullable=True)
    applies_to_class: Mapped[str] = mapped_column(String(255), nullable=True)
    applies_to_id: Mapped[int] = mapped_column(Integer, nullable=True)
    options: Mapped[dict] = mapped_column(JSON, default=dict)
    userid: Mapped[str] = mapped_column(String(255), nullable=True)
    created_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# --- Catalogs ---
class Dialog(Base):
    __tablename__ = "dialogs"
    id: Mapped[int] = mapped_column(primary_key=True)
    label: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, nullable=True)


class UserRole(Base):
    __tablename__ = "user_roles"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True)
    features: Mapped[list] = mapped_column(JSON, default=list)  # capability identifiers


class AutomateDomain(Base):
    __tablename__ = "automate_domains"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True)
    priority: Mapped[int] = mapped_column(Integer, default=0)  # higher wins
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    instances: Mapped[list["AutomateInstance"]] = relationship(
        back_populates="domain", cascade="all, delete-orphan"
    )


class AutomateInstance(Base):
    __tablename__ = "automate_instances"
    __table_args__ = (Index("ix_automate_instances_path", "namespace", "class_name"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    domain_id: Mapped[int] = mapped_column(ForeignKey("automate_domains.id"))
    namespace: Mapped[str] = mapped_column(String(255))  # e.g. SYSTEM
    class_name: Mapped[str] = mapped_column(String(120))  # e.g. PROCESS
    name: Mapped[str] = mapped_column(String(120))

    domain: Mapped[AutomateDomain] = relationship(back_populates="instances")

    @property
    def fqname(self) -> str:
        return f"/{self.domain.name}/{self.namespace}/{self.class_name}/{self.name}"
