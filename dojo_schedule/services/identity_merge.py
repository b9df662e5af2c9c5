"""Read-only admin view joining trainers and admins by e-mail"""

from typing import Dict, Iterable, List, Optional

from dojo_schedule.schemas.users import AdminRecord, MergedUser, TrainerRecord


def normalize_email(email: Optional[str]) -> Optional[str]:
    if not email or not email.strip():
        return None
    return email.strip().lower()


def merge_users(
    trainers: Iterable[TrainerRecord], admins: Iterable[AdminRecord]
) -> List[MergedUser]:
    """
    One MergedUser per distinct e-mail, plus one per admin without e-mail.

    Trainers sharing an e-mail collapse onto the lowest trainer id; admins
    with a matching e-mail enrich that user (the lowest admin id supplies the
    username). Sorted by display name, so input order never matters.
    """
    users: Dict[str, dict] = {}

    for trainer in sorted(trainers, key=lambda t: t.id):
        email = normalize_email(trainer.email)
        key = f"email:{email}" if email else f"trainer:{trainer.id}"
        if key in users:
            continue
        users[key] = {
            "key": key,
            "email": email,
            "display_name": trainer.name,
            "trainer_id": trainer.id,
            "club_id": trainer.club_id,
            "is_trainer": True,
        }

    for admin in sorted(admins, key=lambda a: a.id):
        email = normalize_email(admin.email)
        key = f"email:{email}" if email else f"admin:{admin.id}"
        user = users.get(key)

        if user is None:
            users[key] = {
                "key": key,
                "email": email,
                "display_name": admin.full_name or admin.username,
                "admin_id": admin.id,
                "username": admin.username,
                "club_id": admin.club_id,
                "is_admin": True,
                "is_super_admin": admin.is_super_admin,
            }
            continue

        if not user.get("is_admin"):
            user["admin_id"] = admin.id
            user["username"] = admin.username
            user["is_admin"] = True
        user["is_super_admin"] = user.get("is_super_admin", False) or admin.is_super_admin

    merged = [MergedUser(**data) for data in users.values()]
    return sorted(merged, key=lambda u: (u.display_name.casefold(), u.key))
