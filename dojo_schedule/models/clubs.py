from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from dojo_schedule.core.database import Base


class Club(Base):
    """Partition key for every schedule table"""

    __tablename__ = "clubs"

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False, unique=True, index=True)
    city = Column(String(100), nullable=True)
    address = Column(String(255), nullable=True)
    website_url = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Club(id={self.id}, slug='{self.slug}')>"
