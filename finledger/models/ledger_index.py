"""
LedgerIndex model - auxiliary aggregate values kept beside the records.

Each row is one logical unit (e.g. the whole recent-activity list), replaced
wholesale on every write. ``version`` backs compare-and-swap updates.
"""
from sqlalchemy import JSON, Column, DateTime, Integer, String, func

from .base import Base


class LedgerIndex(Base):
     key = Column(String(100), primary_key=True)
     value = Column(JSON, nullable=False)
     version = Column(Integer, nullable=False, default=1)
     updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

     def __repr__(self):
          return f"<LedgerIndex(key='{self.key}', version={self.version})>"
