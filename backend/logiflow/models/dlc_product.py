from __future__ import annotations
from datetime import date, datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Text, Date, DateTime, Boolean, ForeignKey, text

from .authz import Base


class DlcProduct(Base):
    """Product batch tracked against its expiry date (DLC / DDM / DLUO)."""
    __tablename__ = 'dlc_products'
    STATUS_ACTIVE = 'en_cours'
    STATUS_EXPIRING = 'expires_soon'
    STATUS_EXPIRED = 'expires'
    STATUS_VALIDATED = 'valides'
    ALL_STATUSES = (STATUS_ACTIVE, STATUS_EXPIRING, STATUS_EXPIRED, STATUS_VALIDATED)
    DATE_TYPES = ('dlc', 'ddm', 'dluo')

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    gencode: Mapped[Optional[str]] = mapped_column(String(32))
    supplier_name: Mapped[Optional[str]] = mapped_column(String(128))
    store_id: Mapped[int] = mapped_column(ForeignKey('stores.id'), nullable=False, index=True)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    date_type: Mapped[str] = mapped_column(String(8), nullable=False, default='dlc')
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default='unité')
    location: Mapped[str] = mapped_column(String(64), nullable=False, default='Magasin')
    alert_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_ACTIVE, index=True)
    stock_epuise: Mapped[bool] = mapped_column(Boolean, default=False)
    stock_epuise_by: Mapped[Optional[int]] = mapped_column(Integer)
    stock_epuise_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    validated_by: Mapped[Optional[int]] = mapped_column(Integer)
    validated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    # temporary hand-off marker for expiring stock, independent of validation
    processed_by: Mapped[Optional[int]] = mapped_column(Integer)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    def computed_status(self, today: Optional[date] = None) -> str:
        if self.status == self.STATUS_VALIDATED:
            return self.STATUS_VALIDATED
        today = today or date.today()
        if self.expiry_date < today:
            return self.STATUS_EXPIRED
        if self.expiry_date <= today + timedelta(days=self.alert_threshold or 0):
            return self.STATUS_EXPIRING
        return self.STATUS_ACTIVE
