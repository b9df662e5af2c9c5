from typing import Optional
from pydantic import BaseModel, ConfigDict


class ClubRecord(BaseModel):
    """Public club card; no credentials leave the database"""

    id: str
    name: str
    slug: str
    city: Optional[str] = None
    address: Optional[str] = None
    website_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)
