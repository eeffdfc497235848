"""
Wordsmoke REST API client
"""

import enum
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx
from pydantic import BaseModel, ValidationError

from wordsmoke.core.config import Settings, settings as default_settings
from wordsmoke.core.errors import APIError, InvalidResponseError
from wordsmoke.core.utils import body_text, response_signature
from wordsmoke.schemas.game_schemas import (
    Game,
    GamesListResponse,
    GoalWordLengthsResponse,
    WordValidationResponse,
)
from wordsmoke.schemas.round_schemas import RoundResponse, RoundSubmission

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

class LogStrategy(enum.Enum):
    """How much of a request/response pair to log"""
    ALWAYS = "always"
    CHANGES_ONLY = "changes_only"
    SILENT = "silent"

class APIClient:
    """Async client for the Wordsmoke game server"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or default_settings
        self.base_url = (base_url or self.config.API_BASE_URL).rstrip("/")
        self.auth_token = auth_token
        self.timeout = self.config.API_TIMEOUT
        # Injected by tests; None means a real network transport
        self.transport = transport
        # Last logged signature per URL for LogStrategy.CHANGES_ONLY
        self._signatures: Dict[str, str] = {}

    # -- games --------------------------------------------------------------

    async def fetch_game(self, game_id: str, log_strategy: LogStrategy = LogStrategy.ALWAYS) -> Game:
        """Fetch one game snapshot"""
        response = await self._request("GET", f"games/{game_id}", log_strategy=log_strategy)
        return self._decode(Game, response)

    async def fetch_games(self) -> List[Game]:
        """List the viewer's games"""
        response = await self._request("GET", "games")
        return self._decode(GamesListResponse, response).games

    async def create_game(self, goal_length: int, gc_match_id: Optional[str] = None) -> Game:
        """Create a game with the given goal word length"""
        params: Dict[str, Any] = {"goal_length": goal_length}
        if gc_match_id:
            params["gc_match_id"] = gc_match_id
        response = await self._request("POST", "games", json={"game": params})
        return self._decode(Game, response)

    async def join_game(self, join_code: str) -> Game:
        """Join a game by its join code"""
        response = await self._request("POST", "game_join", json={"join_code": join_code})
        return self._decode(Game, response)

    async def update_game_status(self, game_id: str, status: str) -> Game:
        """Change a game's status, e.g. to start it"""
        response = await self._request("PATCH", f"games/{game_id}", json={"game": {"status": status}})
        return self._decode(Game, response)

    async def fetch_goal_word_lengths(self) -> List[int]:
        """Goal word lengths the server supports"""
        response = await self._request("GET", "goal_word_lengths")
        return self._decode(GoalWordLengthsResponse, response).lengths

    # -- rounds -------------------------------------------------------------

    async def fetch_round(
        self,
        game_id: str,
        round_id: str,
        log_strategy: LogStrategy = LogStrategy.ALWAYS,
        force_refresh: bool = False,
    ) -> RoundResponse:
        """Fetch a round; force_refresh asks intermediaries to bypass their caches"""
        headers = {"Cache-Control": "no-cache"} if force_refresh else None
        response = await self._request(
            "GET",
            f"games/{game_id}/rounds/{round_id}",
            headers=headers,
            log_strategy=log_strategy,
        )
        return self._decode(RoundResponse, response)

    async def submit_guess(self, game_id: str, round_id: str, guess_word: str, phrase: str) -> RoundSubmission:
        """Submit the viewer's guess word and phrase"""
        body = {"submission": {"guess_word": guess_word, "phrase": phrase}}
        response = await self._request("POST", f"games/{game_id}/rounds/{round_id}/submissions", json=body)
        return self._decode(RoundSubmission, response)

    async def submit_phrase_vote(self, game_id: str, round_id: str, favorite_id: str, least_id: str) -> RoundResponse:
        """Record the viewer's favorite and least favorite phrases"""
        body = {
            "phrase_vote": {
                "favorite_submission_id": favorite_id,
                "least_favorite_submission_id": least_id,
            }
        }
        response = await self._request("POST", f"games/{game_id}/rounds/{round_id}/phrase_votes", json=body)
        return self._decode(RoundResponse, response)

    async def validate_word(self, word: str) -> bool:
        """Ask the server whether word is in its dictionary"""
        response = await self._request("POST", "word_validations", json={"word": word})
        return self._decode(WordValidationResponse, response).valid

    # -- dev helpers --------------------------------------------------------

    async def submit_virtual_guess(self, game_id: str, player_id: str) -> RoundResponse:
        """Make a virtual player guess (development servers only)"""
        response = await self._request("POST", f"dev/games/{game_id}/virtual_players/{player_id}/guess")
        return self._decode(RoundResponse, response)

    async def submit_virtual_vote(self, game_id: str, player_id: str) -> RoundResponse:
        """Make a virtual player vote (development servers only)"""
        response = await self._request("POST", f"dev/games/{game_id}/virtual_players/{player_id}/vote")
        return self._decode(RoundResponse, response)

    # -- change notifications -----------------------------------------------

    def cable_url(self) -> Optional[str]:
        """Websocket URL of the change-notification channel"""
        if not self.auth_token:
            return None
        parts = urlsplit(self.base_url)
        scheme = {"https": "wss", "http": "ws"}.get(parts.scheme, parts.scheme)
        query = urlencode({"token": self.auth_token})
        return urlunsplit((scheme, parts.netloc, self.config.CABLE_PATH, query, ""))

    # -- plumbing -----------------------------------------------------------

    def _headers(self, include_content_type: bool) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "X-API-Version": self.config.API_VERSION,
            "X-Client-Version": self.config.VERSION,
            "User-Agent": f"{self.config.APP_NAME}/{self.config.VERSION}",
        }
        if include_content_type:
            headers["Content-Type"] = "application/json"
        if self.config.CLIENT_BUILD:
            headers["X-Client-Build"] = self.config.CLIENT_BUILD
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        log_strategy: LogStrategy = LogStrategy.ALWAYS,
    ) -> httpx.Response:
        url = f"{self.base_url}/{path}"
        request_headers = self._headers(include_content_type=json is not None)
        if headers:
            request_headers.update(headers)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            request = client.build_request(method, url, json=json, headers=request_headers)
            self._log_request(request, log_strategy)
            response = await client.send(request)

        self._log_response(response, log_strategy)
        if not 200 <= response.status_code < 300:
            raise APIError(response.status_code, response.text)
        return response

    def _decode(self, schema: Type[SchemaT], response: httpx.Response) -> SchemaT:
        try:
            payload = response.json()
        except ValueError:
            logger.warning(
                "Non-JSON response status=%s body=%s",
                response.status_code,
                body_text(response.content, self.config.LOG_BODY_MAX_LENGTH),
            )
            raise InvalidResponseError()
        try:
            return schema.model_validate(payload)
        except ValidationError:
            logger.warning(
                "Decode failed for %s status=%s body=%s",
                schema.__name__,
                response.status_code,
                body_text(response.content, self.config.LOG_BODY_MAX_LENGTH),
            )
            raise

    def _log_request(self, request: httpx.Request, strategy: LogStrategy) -> None:
        if strategy is not LogStrategy.ALWAYS:
            return
        logger.debug("API request %s %s", request.method, request.url)
        if self.config.DEBUG:
            safe_headers = {k: v for k, v in request.headers.items() if k.lower() != "authorization"}
            logger.debug("API request headers %s", safe_headers)
            body = body_text(request.content, self.config.LOG_BODY_MAX_LENGTH)
            if body:
                logger.debug("API request body %s", body)

    def _log_response(self, response: httpx.Response, strategy: LogStrategy) -> None:
        if not self._should_log_response(response, strategy):
            return
        logger.debug(
            "API response %s status=%s url=%s",
            _status_symbol(response.status_code),
            response.status_code,
            response.request.url,
        )
        if self.config.DEBUG:
            body = body_text(response.content, self.config.LOG_BODY_MAX_LENGTH)
            if body:
                logger.debug("API response body %s", body)

    def _should_log_response(self, response: httpx.Response, strategy: LogStrategy) -> bool:
        if response.status_code == 304 or strategy is LogStrategy.SILENT:
            return False
        if strategy is LogStrategy.CHANGES_ONLY:
            signature = response_signature(response)
            key = str(response.request.url)
            if signature is not None and self._signatures.get(key) == signature:
                return False
            if signature is not None:
                self._signatures[key] = signature
        return True

def _status_symbol(status_code: int) -> str:
    if 200 <= status_code < 300:
        return "OK"
    if 400 <= status_code < 500:
        return "CLIENT_ERROR"
    if status_code >= 500:
        return "SERVER_ERROR"
    return "UNEXPECTED"
