from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime
from sqlalchemy.sql import func
from dojo_schedule.core.database import Base


class Trainer(Base):
    __tablename__ = "trainers"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    club_id = Column(
        String(36),
        ForeignKey("clubs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Trainer(id={self.id}, email='{self.email}')>"


class Admin(Base):
    """Club admin (club_id set) or super admin (club_id NULL)"""

    __tablename__ = "admins"

    id = Column(Integer, primary_key=True)
    username = Column(String(64), nullable=False, unique=True)
    email = Column(String(255), nullable=True, index=True)
    full_name = Column(String(100), nullable=True)
    is_super_admin = Column(Boolean, default=False, nullable=False)
    club_id = Column(
        String(36), ForeignKey("clubs.id", ondelete="CASCADE"), nullable=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Admin(id={self.id}, username='{self.username}', super={self.is_super_admin})>"
