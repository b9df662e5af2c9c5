from sqlalchemy import (
    Column,
    Integer,
    String,
    SmallInteger,
    Time,
    Boolean,
    ForeignKey,
    DateTime,
    Index,
    CheckConstraint,
)
from sqlalchemy.sql import func
from dojo_schedule.core.database import Base


class TrainingDay(Base):
    """Recurring weekly training; soft-deleted through `is_active`"""

    __tablename__ = "training_days"

    id = Column(Integer, primary_key=True)
    club_id = Column(
        String(36),
        ForeignKey("clubs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # 0 = Sunday ... 6 = Saturday
    weekday = Column(SmallInteger, nullable=False)
    time_start = Column(Time, nullable=False)
    time_end = Column(Time, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_training_days_weekday"),
        Index("ix_training_days_club_active", "club_id", "is_active"),
    )

    def __repr__(self):
        return f"<TrainingDay(id={self.id}, weekday={self.weekday}, time_start={self.time_start}, active={self.is_active})>"
