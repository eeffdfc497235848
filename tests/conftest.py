import json
import os
import sys
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

# Ensure the project root (containing the `wordsmoke` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from wordsmoke.core.config import Settings
from wordsmoke.schemas.game_schemas import Game
from wordsmoke.schemas.round_schemas import RoundPayload, RoundSubmission
from wordsmoke.services.api_client import APIClient
from wordsmoke.services.game_room_service import GameRoomModel
from wordsmoke.services.support_service import SupportClient

BASE_URL = "http://test.local/api"
LOCAL_PLAYER_ID = "player-local"


class StubTransport(httpx.MockTransport):
    """Canned responses keyed by URL substring; the longest match wins"""

    def __init__(self):
        super().__init__(self._handle)
        self.routes: Dict[Tuple[Optional[str], str], Tuple[int, str]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, fragment: str, payload=None, status: int = 200, method: Optional[str] = None, body: Optional[str] = None):
        """Register a response; registering the same route again replaces it"""
        text = body if body is not None else json.dumps(payload if payload is not None else {})
        self.routes[(method, fragment)] = (status, text)

    @property
    def urls(self) -> List[str]:
        return [str(request.url) for request in self.requests]

    def count(self, fragment: str, method: Optional[str] = None) -> int:
        return sum(
            1 for request in self.requests
            if fragment in str(request.url) and (method is None or request.method == method)
        )

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        candidates = [
            key for key in self.routes
            if key[1] in url and (key[0] is None or key[0] == request.method)
        ]
        if not candidates:
            return httpx.Response(200, text="{}", headers={"Content-Type": "application/json"})
        key = max(candidates, key=lambda k: (len(k[1]), k[0] is not None))
        status, text = self.routes[key]
        return httpx.Response(status, text=text, headers={"Content-Type": "application/json"})


@pytest.fixture()
def test_settings():
    return Settings(
        API_BASE_URL=BASE_URL,
        SUPPORT_URL="http://support.local/submit",
        SUPPORT_ACCESS_KEY="test-key",
        MIN_PLAYERS_TO_START=2,
    )


@pytest.fixture()
def stub():
    return StubTransport()


@pytest.fixture()
def api_client(stub, test_settings):
    return APIClient(base_url=BASE_URL, config=test_settings, transport=stub)


@pytest.fixture()
def support_client(stub, test_settings):
    return SupportClient(config=test_settings, transport=stub)


def participant(player_id, name, role="player", score=0, gc_id=None, virtual=None):
    return {
        "id": f"participant-{player_id}",
        "role": role,
        "score": score,
        "player": {
            "id": player_id,
            "display_name": name,
            "game_center_player_id": gc_id if gc_id is not None else f"GC-{player_id}",
            "virtual": virtual,
        },
    }


def game_payload(**overrides):
    payload = {
        "id": "game-1",
        "status": "active",
        "join_code": "ABCD",
        "goal_length": 5,
        "current_round_id": "r1",
        "current_round_number": 1,
        "players_count": 2,
        "rounds": [{"id": "r1", "number": 1, "status": "open"}],
        "participants": [
            participant(LOCAL_PLAYER_ID, "Local", role="host", score=10, gc_id="GC-local"),
            participant("player-a", "Alex", score=5),
        ],
    }
    payload.update(overrides)
    return payload


def submission_payload(submission_id, player_id, **overrides):
    payload = {
        "id": submission_id,
        "player_id": player_id,
        "player_name": player_id,
        "guess_word": None,
        "phrase": None,
        "created_at": None,
    }
    payload.update(overrides)
    return payload


def round_payload(round_id="r1", number=1, status="open", stage="waiting_submissions", submissions=None, **overrides):
    payload = {
        "id": round_id,
        "number": number,
        "status": status,
        "stage": stage,
        "submissions": submissions if submissions is not None else [],
    }
    payload.update(overrides)
    return payload


def round_response(game_id="game-1", **kwargs):
    return {"game_id": game_id, "round": round_payload(**kwargs)}


@pytest.fixture()
def make_game():
    def factory(**overrides) -> Game:
        return Game.model_validate(game_payload(**overrides))
    return factory


@pytest.fixture()
def make_round():
    def factory(**kwargs) -> RoundPayload:
        return RoundPayload.model_validate(round_payload(**kwargs))
    return factory


@pytest.fixture()
def make_submission():
    def factory(submission_id, player_id, **overrides) -> RoundSubmission:
        return RoundSubmission.model_validate(submission_payload(submission_id, player_id, **overrides))
    return factory


@pytest.fixture()
def make_model(api_client, support_client, test_settings, make_game):
    def factory(game: Optional[Game] = None, **overrides) -> GameRoomModel:
        return GameRoomModel(
            game or make_game(**overrides),
            api_client,
            LOCAL_PLAYER_ID,
            support=support_client,
            settings=test_settings,
        )
    return factory
