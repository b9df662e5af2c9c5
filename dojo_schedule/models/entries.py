from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Text,
    ForeignKey,
    DateTime,
    Index,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.sql import func
from dojo_schedule.core.database import Base


class TrainingEntry(Base):
    """A trainer's sign-up for one regular or extra slot on a date"""

    __tablename__ = "training_entries"

    id = Column(Integer, primary_key=True)
    club_id = Column(
        String(36),
        ForeignKey("clubs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    training_day_id = Column(
        Integer, ForeignKey("training_days.id", ondelete="RESTRICT"), nullable=True
    )
    override_id = Column(
        Integer, ForeignKey("training_overrides.id", ondelete="CASCADE"), nullable=True
    )

    training_date = Column(Date, nullable=False)
    trainer_id = Column(
        String(36), ForeignKey("trainers.id", ondelete="CASCADE"), nullable=False
    )
    trainer_name = Column(String(100), nullable=False)
    remark = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "(training_day_id IS NULL) <> (override_id IS NULL)",
            name="ck_training_entries_one_target",
        ),
        # Authoritative "already signed up" guarantee
        UniqueConstraint(
            "trainer_id",
            "training_date",
            "training_day_id",
            name="uq_training_entries_trainer_date_day",
        ),
        UniqueConstraint(
            "trainer_id",
            "training_date",
            "override_id",
            name="uq_training_entries_trainer_date_override",
        ),
        Index("ix_training_entries_club_date", "club_id", "training_date"),
    )

    def __repr__(self):
        return f"<TrainingEntry(id={self.id}, trainer_id={self.trainer_id}, date={self.training_date}, training_day_id={self.training_day_id}, override_id={self.override_id})>"
