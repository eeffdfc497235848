"""
Derived rows for reporting and the waiting room
"""

from pydantic import BaseModel

class ReportablePhrase(BaseModel):
    """Another player's phrase that the viewer may report"""
    id: str
    round_number: int
    player_id: str
    player_name: str
    phrase: str

    class Config:
        frozen = True

class WaitingRoomPlayerStatus(BaseModel):
    """One row of the pre-game roster"""
    player_id: str
    name: str
    status_text: str
    highlights_as_positive: bool = False

    class Config:
        frozen = True
