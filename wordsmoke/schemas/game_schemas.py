"""
Game snapshot schemas
"""

from pydantic import BaseModel, Field
from typing import Optional, List

class GameRoundSummary(BaseModel):
    """Round entry listed on a game snapshot"""
    id: str
    number: int
    status: str
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    submissions_count: Optional[int] = None

    class Config:
        frozen = True

class GameParticipantPlayer(BaseModel):
    """Player identity behind a participant"""
    id: str
    display_name: str
    nickname: Optional[str] = None
    game_center_player_id: str = Field(default="", description="Stable externally assigned identity")
    virtual: Optional[bool] = None

    class Config:
        frozen = True

class GameParticipant(BaseModel):
    """A player's membership in a game"""
    id: str
    role: str = Field(default="player", description="host or player")
    score: int = 0
    joined_at: Optional[str] = None
    player: GameParticipantPlayer

    class Config:
        frozen = True

class GameInvitedPlayer(BaseModel):
    """Pending or resolved invitation"""
    player_id: str
    display_name: str
    nickname: Optional[str] = None
    invite_status: str = "pending"
    accepted: bool = False

    class Config:
        frozen = True

class Game(BaseModel):
    """Game snapshot as returned by the server"""
    id: str
    status: str = Field(..., description="waiting, active or completed")
    join_code: str = ""
    gc_match_id: Optional[str] = None
    goal_length: int
    creator_id: Optional[str] = None
    current_round_id: Optional[str] = None
    current_round_number: Optional[int] = None
    players_count: Optional[int] = None
    participant_names: Optional[List[str]] = None
    rounds: Optional[List[GameRoundSummary]] = None
    participants: Optional[List[GameParticipant]] = None
    invited_players: Optional[List[GameInvitedPlayer]] = None
    ended_at: Optional[str] = None
    winner_names: Optional[List[str]] = None
    winning_round_number: Optional[int] = None

    class Config:
        frozen = True

    def merged_with(self, incoming: "Game") -> "Game":
        """Apply an incoming snapshot, keeping known invitations when it omits them"""
        if incoming.invited_players is None and self.invited_players is not None:
            return incoming.model_copy(update={"invited_players": self.invited_players})
        return incoming

    def participant_for(self, player_id: str) -> Optional[GameParticipant]:
        """Participant whose player has the given id"""
        for participant in self.participants or []:
            if participant.player.id == player_id:
                return participant
        return None

class GamesListResponse(BaseModel):
    """Game list wrapper"""
    games: List[Game]

class GoalWordLengthsResponse(BaseModel):
    """Goal word lengths the server can deal"""
    lengths: List[int]

class WordValidationResponse(BaseModel):
    """Remote word check result"""
    valid: bool
