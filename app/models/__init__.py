from app.models.activity import Activity
from app.models.interest import Interest
from app.models.notification import Notification
from app.models.profile import Profile
from app.models.user import User

__all__ = [
    "User",
    "Profile",
    "Interest",
    "Activity",
    "Notification",
]
