"""
Per-viewer ordering of submissions for the voting screen
"""

import hashlib
from typing import Iterable, List, Tuple

from wordsmoke.schemas.round_schemas import RoundPayload, RoundSubmission

def voting_order_key(round_id: str, viewer_id: str, submission_id: str) -> Tuple[int, str]:
    """Sort key that is stable per (round, viewer) and independent of server order"""
    seed = f"{round_id}:{viewer_id}:{submission_id}".encode("utf-8")
    digest = int.from_bytes(hashlib.sha256(seed).digest(), "big")
    # Equal digests fall back to the submission id
    return digest, submission_id

def order_for_viewer(round_id: str, viewer_id: str, submissions: Iterable[RoundSubmission]) -> List[RoundSubmission]:
    """Shuffle submissions deterministically for one viewer"""
    return sorted(
        submissions,
        key=lambda submission: voting_order_key(round_id, viewer_id, submission.id),
    )

def other_submissions(round_payload: RoundPayload, viewer_id: str) -> List[RoundSubmission]:
    """Submissions not owned by the viewer, in the viewer's voting order"""
    others = [s for s in round_payload.submissions if s.player_id != viewer_id]
    return order_for_viewer(round_payload.id, viewer_id, others)
