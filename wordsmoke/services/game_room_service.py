"""
Game room model: reconciles server snapshots with client-local round state
"""

import asyncio
import json
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from wordsmoke.core.config import Settings, settings as default_settings
from wordsmoke.core.errors import TRANSPORT_ERRORS, ValidationFailure, describe_error
from wordsmoke.schemas.game_schemas import Game
from wordsmoke.schemas.report_schemas import WaitingRoomPlayerStatus
from wordsmoke.schemas.round_schemas import RoundPayload, RoundSubmission
from wordsmoke.services.api_client import APIClient, LogStrategy
from wordsmoke.services.game_channel import GameChannelClient
from wordsmoke.services.report_service import ReportService
from wordsmoke.services.submission_ordering import other_submissions as ordered_other_submissions
from wordsmoke.services.support_service import SupportClient

logger = logging.getLogger(__name__)

Observer = Callable[[], None]

class GameRoomModel:
    """Single owner of one game's client-side state"""

    def __init__(
        self,
        game: Game,
        api_client: APIClient,
        local_player_id: str,
        support: Optional[SupportClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.game = game
        self.api_client = api_client
        self.local_player_id = local_player_id
        self.support = support or SupportClient(config=self.settings)

        # Server snapshots
        self.round: Optional[RoundPayload] = None
        self.completed_rounds: List[RoundPayload] = []

        # Drafts
        self.guess_word = ""
        self.phrase = ""
        self.is_guess_valid = False
        self.is_phrase_valid = False
        self.selected_favorite_id: Optional[str] = None
        self.selected_least_id: Optional[str] = None
        self.vote_submitted = False

        self.is_busy = False
        self.error_message: Optional[str] = None

        # (word, server verdict) of the last successful remote check
        self._last_validation: Optional[Tuple[str, bool]] = None
        self._last_round_id: Optional[str] = None
        self._observers: List[Observer] = []
        self._channel: Optional[GameChannelClient] = None
        self._channel_tasks: set = set()

        self.reports = ReportService(self)

    # -- observers ----------------------------------------------------------

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register a change callback; returns a function that removes it"""
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._observers):
            try:
                callback()
            except Exception:
                logger.exception("Game room observer failed")

    # -- snapshots ----------------------------------------------------------

    def update_game(self, game: Game) -> None:
        """Apply a game snapshot, keeping known invitations when it omits them"""
        self._apply_game(game)
        self._notify()

    def _apply_game(self, game: Game) -> None:
        merged = self.game.merged_with(game)
        if merged != self.game:
            self.game = merged

    async def refresh_round(self, set_busy: bool = True) -> None:
        """Fetch the game and its rounds and reconcile local state"""
        if set_busy:
            if self.is_busy:
                return
            self.is_busy = True
        try:
            await self._reconcile()
            self.error_message = None
        except TRANSPORT_ERRORS as e:
            self._set_error(describe_error(e))
            logger.warning("Refresh of game %s failed: %s", self.game.id, e)
        finally:
            if set_busy:
                self.is_busy = False
        self._notify()

    async def _reconcile(self) -> None:
        game = await self.api_client.fetch_game(self.game.id, log_strategy=LogStrategy.CHANGES_ONLY)
        self._apply_game(game)

        # A finished game re-fetches every closed round so final marks settle
        force_refresh = self.game.status == "completed"
        for summary in self.game.rounds or []:
            if summary.status != "closed":
                continue
            if not force_refresh and self._completed_round(summary.id) is not None:
                continue
            response = await self.api_client.fetch_round(
                self.game.id,
                summary.id,
                log_strategy=LogStrategy.CHANGES_ONLY,
                force_refresh=force_refresh,
            )
            self._upsert_completed(response.round)

        current_round_id = self.game.current_round_id
        if current_round_id is None:
            self.round = None
            self._reset_round_state_if_needed(None)
            return

        response = await self.api_client.fetch_round(
            self.game.id,
            current_round_id,
            log_strategy=LogStrategy.CHANGES_ONLY,
        )
        fetched = response.round
        if fetched.is_closed:
            if self._completed_round(fetched.id) is None:
                self._upsert_completed(fetched)
            self.round = None
            self._reset_round_state_if_needed(None)
            return

        if fetched != self.round:
            self.round = fetched
        self._reset_round_state_if_needed(fetched.id)
        self._sync_vote_state(fetched)

    def _completed_round(self, round_id: str) -> Optional[RoundPayload]:
        for round_payload in self.completed_rounds:
            if round_payload.id == round_id:
                return round_payload
        return None

    def _upsert_completed(self, round_payload: RoundPayload) -> None:
        for index, existing in enumerate(self.completed_rounds):
            if existing.id == round_payload.id:
                if existing != round_payload:
                    self.completed_rounds[index] = round_payload
                return
        self.completed_rounds.append(round_payload)
        self.completed_rounds.sort(key=lambda r: r.number)

    def _reset_round_state_if_needed(self, round_id: Optional[str]) -> None:
        if round_id == self._last_round_id:
            return
        self.selected_favorite_id = None
        self.selected_least_id = None
        self.vote_submitted = False
        self.guess_word = ""
        self.phrase = ""
        self.is_guess_valid = False
        self.is_phrase_valid = False
        self._last_validation = None
        self._last_round_id = round_id

    def _sync_vote_state(self, round_payload: RoundPayload) -> None:
        # The server moves a voter to reveal once it records the vote
        if round_payload.status == "voting" and round_payload.stage != "voting" and not self.vote_submitted:
            self.vote_submitted = True
        favorite_id = round_payload.viewer_favorite_submission_id
        least_id = round_payload.viewer_least_favorite_submission_id
        if favorite_id and least_id:
            self.selected_favorite_id = favorite_id
            self.selected_least_id = least_id
            self.vote_submitted = True

    def _set_error(self, message: str) -> None:
        if self.error_message != message:
            self.error_message = message

    # -- submissions --------------------------------------------------------

    async def submit_guess(self) -> None:
        """Submit the drafted guess and phrase for the current round"""
        round_id = self.game.current_round_id
        if round_id is None or not (self.is_guess_valid and self.is_phrase_valid) or self.is_busy:
            return
        self.is_busy = True
        try:
            await self.api_client.submit_guess(
                self.game.id,
                round_id,
                guess_word=self.guess_word.strip().lower(),
                phrase=self.phrase.strip(),
            )
            self.guess_word = ""
            self.phrase = ""
            self.is_guess_valid = False
            self.is_phrase_valid = False
            self.error_message = None
            logger.info("Submitted guess for round %s", round_id)
            await self.refresh_round(set_busy=False)
        except TRANSPORT_ERRORS as e:
            self._set_error(describe_error(e))
        finally:
            self.is_busy = False
        self._notify()

    async def submit_votes(self) -> None:
        """Submit the favorite and least favorite phrase selections"""
        round_id = self.game.current_round_id
        if round_id is None or self.is_busy:
            return
        try:
            favorite_id, least_id = self._vote_selection()
        except ValidationFailure as e:
            self._set_error(e.message)
            self._notify()
            return

        self.is_busy = True
        try:
            response = await self.api_client.submit_phrase_vote(self.game.id, round_id, favorite_id, least_id)
            self.vote_submitted = True
            self.round = response.round
            self.error_message = None
            logger.info("Submitted votes for round %s", round_id)
            await self.refresh_round(set_busy=False)
        except TRANSPORT_ERRORS as e:
            self._set_error(describe_error(e))
        finally:
            self.is_busy = False
        self._notify()

    def _vote_selection(self):
        favorite_id = self.selected_favorite_id
        least_id = self.selected_least_id
        if not favorite_id or not least_id:
            raise ValidationFailure("Select a favorite and a least favorite phrase.")
        if favorite_id == least_id:
            raise ValidationFailure("Favorite and least favorite must be different.")
        return favorite_id, least_id

    async def start_game(self) -> None:
        """Move a waiting game to active once enough players have joined"""
        if self.is_busy:
            return
        count = self.game.players_count
        if count is None:
            count = len(self.game.participants or [])
        minimum = self.settings.MIN_PLAYERS_TO_START
        if count < minimum:
            self._set_error(f"At least {minimum} players must join before starting.")
            self._notify()
            return

        self.is_busy = True
        try:
            game = await self.api_client.update_game_status(self.game.id, "active")
            self._apply_game(game)
            logger.info("Started game %s", self.game.id)
            await self.refresh_round(set_busy=False)
        except TRANSPORT_ERRORS as e:
            self._set_error(describe_error(e))
        finally:
            self.is_busy = False
        self._notify()

    async def submit_virtual_guess(self, player_id: str) -> None:
        """Ask the dev server to make a virtual player guess"""
        await self._run_virtual_action(self.api_client.submit_virtual_guess, player_id)

    async def submit_virtual_vote(self, player_id: str) -> None:
        """Ask the dev server to make a virtual player vote"""
        await self._run_virtual_action(self.api_client.submit_virtual_vote, player_id)

    async def _run_virtual_action(self, action, player_id: str) -> None:
        if self.is_busy:
            return
        self.is_busy = True
        try:
            await action(self.game.id, player_id)
            await self.refresh_round(set_busy=False)
        except TRANSPORT_ERRORS as e:
            self._set_error(describe_error(e))
        finally:
            self.is_busy = False
        self._notify()

    # -- draft validation ---------------------------------------------------

    async def validate_guess_word(self) -> None:
        """Validate the drafted guess, asking the server once per distinct word"""
        trimmed = self.guess_word.strip().lower()
        if len(trimmed) != self.game.goal_length:
            self.is_guess_valid = False
            self.is_phrase_valid = phrase_contains_all_letters(self.phrase, trimmed)
            self._notify()
            return

        if self._last_validation is not None and self._last_validation[0] == trimmed:
            self.is_guess_valid = self._last_validation[1]
            self.is_phrase_valid = phrase_contains_all_letters(self.phrase, trimmed)
            self._notify()
            return

        try:
            self.is_guess_valid = await self.api_client.validate_word(trimmed)
            self._last_validation = (trimmed, self.is_guess_valid)
        except TRANSPORT_ERRORS as e:
            self.is_guess_valid = False
            self._set_error(describe_error(e))
        self.is_phrase_valid = phrase_contains_all_letters(self.phrase, trimmed)
        self._notify()

    def validate_phrase(self) -> None:
        """Recompute phrase validity against the drafted guess"""
        self.is_phrase_valid = phrase_contains_all_letters(self.phrase, self.guess_word.strip().lower())
        self._notify()

    # -- vote selection -----------------------------------------------------

    def toggle_favorite(self, submission: RoundSubmission) -> None:
        self.selected_favorite_id = None if self.selected_favorite_id == submission.id else submission.id
        if self.selected_least_id is not None and self.selected_least_id == self.selected_favorite_id:
            self.selected_least_id = None
        self._notify()

    def toggle_least(self, submission: RoundSubmission) -> None:
        self.selected_least_id = None if self.selected_least_id == submission.id else submission.id
        if self.selected_favorite_id is not None and self.selected_favorite_id == self.selected_least_id:
            self.selected_favorite_id = None
        self._notify()

    def can_submit_votes(self) -> bool:
        favorite_id = self.selected_favorite_id
        least_id = self.selected_least_id
        return bool(favorite_id) and bool(least_id) and favorite_id != least_id

    # -- queries ------------------------------------------------------------

    def is_ready_to_vote(self) -> bool:
        return self.round is not None and self.round.stage == "voting" and not self.vote_submitted

    def can_show_voting(self) -> bool:
        return self.round is not None and self.round.stage == "voting"

    def has_submitted_own_guess(self) -> bool:
        if self.round is None:
            return False
        own = self.own_submission(self.round)
        return own is not None and own.created_at is not None

    def own_submission(self, round_payload: RoundPayload) -> Optional[RoundSubmission]:
        for submission in round_payload.submissions:
            if submission.player_id == self.local_player_id:
                return submission
        return None

    def other_submissions(self, round_payload: RoundPayload) -> List[RoundSubmission]:
        """Other players' submissions in this viewer's stable voting order"""
        return ordered_other_submissions(round_payload, self.local_player_id)

    def player_name(self, player_id: str, rounds: Optional[Sequence[RoundPayload]] = None) -> Optional[str]:
        participant = self.game.participant_for(player_id)
        if participant is not None:
            return participant.player.display_name
        for round_payload in rounds or []:
            for submission in round_payload.submissions:
                if submission.player_id == player_id and submission.player_name:
                    return submission.player_name
        return None

    def player_score(self, player_id: str) -> int:
        participant = self.game.participant_for(player_id)
        return participant.score if participant is not None else 0

    def is_host(self) -> bool:
        participant = self.game.participant_for(self.local_player_id)
        return participant is not None and participant.role == "host"

    def is_virtual_player(self, player_id: str) -> bool:
        """Whether a player is a server-driven virtual player"""
        participant = self.game.participant_for(player_id)
        if participant is not None:
            if participant.player.virtual is not None:
                return participant.player.virtual
            return participant.player.game_center_player_id.startswith("VIRTUAL")
        rounds = list(self.completed_rounds)
        if self.round is not None:
            rounds.append(self.round)
        for round_payload in rounds:
            for submission in round_payload.submissions:
                if submission.player_id == player_id and submission.player_virtual is not None:
                    return submission.player_virtual
        return False

    def has_pending_invited_players(self) -> bool:
        return any(not invited.accepted for invited in self.game.invited_players or [])

    def should_confirm_early_start(self) -> bool:
        return self.is_host() and self.has_pending_invited_players()

    def waiting_room_player_statuses(self) -> List[WaitingRoomPlayerStatus]:
        """Roster rows for the pre-game waiting room, host first"""
        participants = self.game.participants
        if participants is None:
            return []

        rows: List[WaitingRoomPlayerStatus] = []
        covered = set()

        host = next((p for p in participants if p.role == "host"), None)
        if host is not None:
            rows.append(WaitingRoomPlayerStatus(
                player_id=host.player.id,
                name=host.player.display_name,
                status_text="Host",
                highlights_as_positive=True,
            ))
            covered.add(host.player.id)

        for invited in self.game.invited_players or []:
            if host is not None and invited.player_id in (host.player.id, host.player.game_center_player_id):
                continue
            joined = next(
                (p for p in participants
                 if invited.player_id in (p.player.id, p.player.game_center_player_id)),
                None,
            )
            if joined is not None:
                covered.add(joined.player.id)
                status_text = "Joined"
            elif invited.invite_status == "accepted":
                status_text = "Accepted"
            elif invited.invite_status == "declined":
                status_text = "Declined"
            else:
                status_text = "Invited"
            rows.append(WaitingRoomPlayerStatus(
                player_id=invited.player_id,
                name=invited.display_name,
                status_text=status_text,
                highlights_as_positive=status_text in ("Joined", "Accepted"),
            ))

        for participant in participants:
            if participant.player.id in covered:
                continue
            rows.append(WaitingRoomPlayerStatus(
                player_id=participant.player.id,
                name=participant.player.display_name,
                status_text="Joined",
                highlights_as_positive=True,
            ))
        return rows

    # -- change notifications -----------------------------------------------

    async def connect_to_game_channel(self) -> None:
        """Subscribe to server change notifications for this game"""
        url = self.api_client.cable_url()
        if url is None:
            logger.debug("No auth token; game channel disabled for %s", self.game.id)
            return
        await self.disconnect_from_game_channel()
        self._channel = GameChannelClient(url, on_message=self._handle_channel_message)
        await self._channel.subscribe(json.dumps({"channel": "GameChannel", "game_id": self.game.id}))
        await self._channel.connect()
        logger.info("Connected game channel for %s", self.game.id)

    async def disconnect_from_game_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is not None:
            await channel.disconnect()
        for task in list(self._channel_tasks):
            task.cancel()
        self._channel_tasks.clear()

    def _handle_channel_message(self, message: dict) -> None:
        # Only a trigger; state always comes from a fresh fetch
        task = asyncio.get_running_loop().create_task(self.refresh_round())
        self._channel_tasks.add(task)
        task.add_done_callback(self._channel_tasks.discard)

def phrase_contains_all_letters(phrase: str, guess_word: str) -> bool:
    """Every distinct letter of guess_word appears somewhere in phrase"""
    if not guess_word:
        return False
    phrase_lower = phrase.lower()
    return all(letter in phrase_lower for letter in set(guess_word))
