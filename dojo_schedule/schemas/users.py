from typing import Optional
from pydantic import BaseModel, ConfigDict


class TrainerRecord(BaseModel):
    id: str
    email: str
    name: str
    club_id: str

    model_config = ConfigDict(from_attributes=True, frozen=True)


class AdminRecord(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    is_super_admin: bool = False
    club_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class MergedUser(BaseModel):
    """Admin view of one person, who may be trainer, admin, or both"""

    key: str
    email: Optional[str] = None
    display_name: str
    trainer_id: Optional[str] = None
    admin_id: Optional[int] = None
    username: Optional[str] = None
    club_id: Optional[str] = None
    is_trainer: bool = False
    is_admin: bool = False
    is_super_admin: bool = False

    model_config = ConfigDict(frozen=True)


class PromoteRequest(BaseModel):
    is_super_admin: bool = False
