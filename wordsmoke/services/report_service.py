"""
End-of-round and end-of-game reporting
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from wordsmoke.core.errors import ValidationFailure
from wordsmoke.schemas.report_schemas import ReportablePhrase
from wordsmoke.schemas.round_schemas import RoundPayload

if TYPE_CHECKING:
    from wordsmoke.services.game_room_service import GameRoomModel

logger = logging.getLogger(__name__)

class ReportService:
    """Read-only report views over a game room model, plus user report submission"""

    def __init__(self, room: "GameRoomModel"):
        self.room = room

    def report_rounds(self) -> List[RoundPayload]:
        """Completed rounds plus the current one, unique by id, in round order"""
        by_id: Dict[str, RoundPayload] = {}
        for round_payload in self.room.completed_rounds:
            by_id.setdefault(round_payload.id, round_payload)
        if self.room.round is not None:
            by_id.setdefault(self.room.round.id, self.room.round)
        return sorted(by_id.values(), key=lambda r: r.number)

    def ordered_player_ids_for_report(self, rounds: Sequence[RoundPayload]) -> List[str]:
        """Other players by name, then the viewer"""
        viewer_id = self.room.local_player_id
        names: Dict[str, str] = {}

        participants = self.room.game.participants or []
        if participants:
            for participant in participants:
                names.setdefault(participant.player.id, participant.player.display_name)
        else:
            # No roster on the snapshot; fall back to whoever submitted
            for round_payload in rounds:
                for submission in round_payload.submissions:
                    names.setdefault(submission.player_id, submission.player_name)

        others = sorted(
            (player_id for player_id in names if player_id != viewer_id),
            key=lambda player_id: (names[player_id].casefold(), player_id),
        )
        if viewer_id in names:
            others.append(viewer_id)
        return others

    def winning_round(self) -> Optional[RoundPayload]:
        """The round that decided the game, or the best available stand-in"""
        completed = self.room.completed_rounds
        winning_number = self.room.game.winning_round_number
        if winning_number is not None:
            for round_payload in completed:
                if round_payload.number == winning_number:
                    return round_payload
            return self.room.round
        if completed:
            return max(completed, key=lambda r: r.number)
        return self.room.round

    def goal_word(self) -> Optional[str]:
        """First goal word revealed in any submission feedback"""
        for round_payload in self.report_rounds():
            for submission in round_payload.submissions:
                feedback = submission.feedback
                goal = (feedback.goal or "").strip() if feedback is not None else ""
                if goal:
                    return goal
        return None

    def winner_ids(self, round_payload: RoundPayload) -> List[str]:
        """Correct guessers holding the top score; ties all win"""
        correct_ids: List[str] = []
        for submission in round_payload.submissions:
            if submission.correct_guess is True and submission.player_id not in correct_ids:
                correct_ids.append(submission.player_id)
        if not correct_ids:
            return []

        scores = {player_id: self.room.player_score(player_id) for player_id in correct_ids}
        top_score = max(scores.values())
        return [player_id for player_id in correct_ids if scores[player_id] == top_score]

    def reportable_phrases(self) -> List[ReportablePhrase]:
        """Other players' non-empty phrases, newest round first"""
        rounds = self.report_rounds()
        seen = set()
        phrases: List[ReportablePhrase] = []
        for round_payload in rounds:
            for submission in round_payload.submissions:
                if submission.player_id == self.room.local_player_id or submission.id in seen:
                    continue
                phrase = (submission.phrase or "").strip()
                if not phrase:
                    continue
                seen.add(submission.id)
                name = self.room.player_name(submission.player_id, rounds) or submission.player_name
                phrases.append(ReportablePhrase(
                    id=submission.id,
                    round_number=round_payload.number,
                    player_id=submission.player_id,
                    player_name=name,
                    phrase=phrase,
                ))
        phrases.sort(key=lambda p: p.player_name.casefold())
        phrases.sort(key=lambda p: p.round_number, reverse=True)
        return phrases

    # -- user reports -------------------------------------------------------

    def problem_with_game_report_message(
        self,
        description: str,
        provided_name: Optional[str] = None,
        provided_email: Optional[str] = None,
    ) -> str:
        """Plain-text body of a "problem with this game" report"""
        room = self.room
        lines = [
            f"game_id: {room.game.id}",
            f"round_id: {room.round.id if room.round else 'none'}",
            f"player_id: {room.local_player_id}",
            f"player_name: {room.player_name(room.local_player_id) or 'Unknown'}",
        ]
        name = (provided_name or "").strip()
        if name:
            lines.append(f"provided_name: {name}")
        email = (provided_email or "").strip()
        if email:
            lines.append(f"provided_email: {email}")
        lines.append("")
        lines.append(description.strip())
        return "\n".join(lines)

    def inappropriate_content_report_message(self, phrases: Sequence[ReportablePhrase]) -> str:
        """Plain-text body listing reported phrases"""
        lines = [
            f"game_id: {self.room.game.id}",
            f"reporter_id: {self.room.local_player_id}",
            "",
        ]
        for phrase in phrases:
            lines.append(
                f"round {phrase.round_number} - {phrase.player_name} ({phrase.player_id}) [{phrase.id}]: {phrase.phrase}"
            )
        return "\n".join(lines)

    async def submit_problem_with_game_report(
        self,
        description: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> None:
        """Send a problem report; raises ValidationFailure for a blank description"""
        if not description.strip():
            raise ValidationFailure("Please describe the problem.")
        message = self.problem_with_game_report_message(description, name, email)
        await self.room.support.send(subject=f"Problem with game {self.room.game.id}", message=message)

    async def submit_inappropriate_content_report(self, selected_phrases: Sequence[ReportablePhrase]) -> None:
        """Report phrases; raises ValidationFailure when nothing is selected"""
        if not selected_phrases:
            raise ValidationFailure("Select at least one phrase to report.")
        message = self.inappropriate_content_report_message(selected_phrases)
        logger.info("Reporting %d phrase(s) in game %s", len(selected_phrases), self.room.game.id)
        await self.room.support.send(subject=f"Inappropriate content in game {self.room.game.id}", message=message)
