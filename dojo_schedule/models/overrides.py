from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Time,
    Text,
    Boolean,
    ForeignKey,
    DateTime,
    Index,
    CheckConstraint,
)
from sqlalchemy.sql import func
from dojo_schedule.core.database import Base


class TrainingOverride(Base):
    """
    Per-date exception to the weekly schedule.

    kind = "cancel": training_day_id set cancels one template's occurrence,
    NULL cancels every occurrence that date (legacy rows).
    kind = "extra": standalone training; requires_roster = false marks an
    info-only event.
    """

    __tablename__ = "training_overrides"

    id = Column(Integer, primary_key=True)
    club_id = Column(
        String(36),
        ForeignKey("clubs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # RESTRICT: SET NULL would turn a targeted cancel into a wide one
    training_day_id = Column(
        Integer, ForeignKey("training_days.id", ondelete="RESTRICT"), nullable=True
    )

    override_date = Column(Date, nullable=False)
    kind = Column(String(10), nullable=False)
    time_start = Column(Time, nullable=True)
    time_end = Column(Time, nullable=True)
    reason = Column(Text, nullable=True)
    requires_roster = Column(Boolean, default=True, nullable=False)

    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("kind IN ('cancel', 'extra')", name="ck_overrides_kind"),
        Index("ix_overrides_club_date", "club_id", "override_date"),
    )

    def __repr__(self):
        return f"<TrainingOverride(id={self.id}, kind={self.kind}, date={self.override_date}, training_day_id={self.training_day_id})>"
