"""
Round snapshot schemas
"""

from pydantic import BaseModel, Field
from typing import Optional, List

class SubmissionFeedback(BaseModel):
    """Structured feedback attached to a revealed submission"""
    goal: Optional[str] = None
    guess: Optional[str] = None
    marks: Optional[List[str]] = None

    class Config:
        frozen = True

class RoundSubmission(BaseModel):
    """One player's guess and phrase for a round"""
    id: str
    guess_word: Optional[str] = None
    phrase: Optional[str] = None
    player_id: str
    player_name: str = ""
    player_virtual: Optional[bool] = None
    marks: Optional[List[str]] = None
    correct_guess: Optional[bool] = None
    created_at: Optional[str] = Field(default=None, description="None until the owner submits")
    feedback: Optional[SubmissionFeedback] = None
    score_delta: Optional[int] = None
    voted: Optional[bool] = None

    class Config:
        frozen = True

class RoundPayload(BaseModel):
    """Full round snapshot, current or completed"""
    id: str
    number: int
    status: str = Field(..., description="open, voting or closed")
    stage: str = Field(..., description="waiting_submissions, voting or reveal")
    submissions: List[RoundSubmission] = Field(default_factory=list)
    phrase_votes_count: int = 0
    viewer_favorite_submission_id: Optional[str] = None
    viewer_least_favorite_submission_id: Optional[str] = None

    class Config:
        frozen = True

    @property
    def is_closed(self) -> bool:
        return self.status == "closed"

class RoundResponse(BaseModel):
    """Round fetch and vote response"""
    game_id: str
    round: RoundPayload
