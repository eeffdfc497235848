# Client services
from .api_client import APIClient, LogStrategy
from .feedback_service import WordleMark, marks
from .game_channel import GameChannelClient
from .game_room_service import GameRoomModel
from .report_service import ReportService
from .session_service import GameSession
from .support_service import SupportClient

__all__ = [
    "APIClient",
    "LogStrategy",
    "WordleMark",
    "marks",
    "GameChannelClient",
    "GameRoomModel",
    "ReportService",
    "GameSession",
    "SupportClient",
]
