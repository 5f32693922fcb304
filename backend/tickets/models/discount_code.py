"""
Discount code projection: the configured codes as rows, for reporting and
for processes that load the catalogue without the settings file.
"""

from sqlalchemy import Column, DateTime, Integer, String, JSON

from tickets.db.base import Base, TimestampMixin


class DiscountCodeRow(Base, TimestampMixin):
    __tablename__ = "discount_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(100), nullable=False, unique=True, index=True)
    display_name = Column(String(255), nullable=False)
    discount_type = Column(JSON, nullable=False)  # {"type": tag, "options": {...}}
    available_from = Column(DateTime(timezone=True), nullable=True)
    available_to = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<DiscountCodeRow(code={self.code}, type={self.discount_type.get('type')})>"
