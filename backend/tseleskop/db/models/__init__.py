"""ORM models exposed for metadata discovery."""
from tseleskop.db.models.friendship import Friendship
from tseleskop.db.models.goal import Goal, SubGoal
from tseleskop.db.models.notification_settings import NotificationSettings
from tseleskop.db.models.refresh_token import RefreshToken
from tseleskop.db.models.user import User
from tseleskop.db.models.weekly_report import WeeklyReport

__all__ = [
    "Friendship",
    "Goal",
    "NotificationSettings",
    "RefreshToken",
    "SubGoal",
    "User",
    "WeeklyReport",
]
