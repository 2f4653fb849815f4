from __future__ import annotations
from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, ForeignKey, UniqueConstraint, DateTime, text
from typing import Optional

from logiflow.constants.permissions import Role, parse_role

Base = declarative_base()


class Store(Base):
    """A physical shop (magasin). Tasks and DLC products belong to exactly one."""
    __tablename__ = 'stores'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    color: Mapped[str] = mapped_column(String(16), default='#1976D2')
    user_stores = relationship('UserStore', back_populates='store', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))


class User(Base):
    __tablename__ = 'users'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(128), unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(128))
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # free text in the database; parsed into Role at the authentication boundary
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=Role.EMPLOYEE.value)
    password_changed: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    user_stores = relationship('UserStore', back_populates='user', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    @property
    def parsed_role(self) -> Optional[Role]:
        return parse_role(self.role)

    def set_password(self, raw: str):
        from logiflow.security.passwords import hash_password
        self.password_hash = hash_password(raw)

    def verify_password(self, raw: str) -> bool:
        from logiflow.security.passwords import verify_password
        return verify_password(raw, self.password_hash)


class UserStore(Base):
    __tablename__ = 'user_stores'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    store_id: Mapped[int] = mapped_column(ForeignKey('stores.id', ondelete='CASCADE'), nullable=False)
    __table_args__ = (UniqueConstraint('user_id', 'store_id', name='uq_user_store'),)
    user = relationship('User', back_populates='user_stores')
    store = relationship('Store', back_populates='user_stores')
