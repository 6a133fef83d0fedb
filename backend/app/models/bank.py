"""
Bank catalog model. Top-ups are simulated against one of these.
"""

from sqlalchemy import Column, Integer, String, Boolean
from backend.app.db.session import Base


class Bank(Base):
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    code = Column(String(20), unique=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Bank(id={self.id}, code='{self.code}')>"
