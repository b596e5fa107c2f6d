# Import all models here for Alembic
from app.models.waitlist_entry import WaitlistEntry, WaitlistStatus

__all__ = [
    "WaitlistEntry",
    "WaitlistStatus",
]
