"""
All database models. Imported here so Base.metadata sees them for create_all().
"""

from .base import UserOwnedBase
from .activity import Activity
from .summary import DailySummary
from .report import PeriodicReport, ReportType
from .chat import ChatHistory
from .embedding import ChatEmbedding
from .profile import Profile

__all__ = [
    "UserOwnedBase",
    "Activity",
    "DailySummary",
    "PeriodicReport", "ReportType",
    "ChatHistory",
    "ChatEmbedding",
    "Profile",
]
