#!/usr/bin/env python3
"""
Wordsmoke - command line entry point
"""

import asyncio
import logging
from typing import Optional

import click

from wordsmoke.core.config import settings
from wordsmoke.core.errors import TRANSPORT_ERRORS, describe_error
from wordsmoke.core.log import setup_logging
from wordsmoke.services.api_client import APIClient
from wordsmoke.services.feedback_service import mark_symbols
from wordsmoke.services.game_room_service import GameRoomModel
from wordsmoke.services.session_service import GameSession

logger = logging.getLogger("wordsmoke")

def summarize(model: GameRoomModel) -> str:
    """One-line description of the model state"""
    game = model.game
    parts = [f"game={game.id}", f"status={game.status}"]
    if model.round is not None:
        parts.append(f"round={model.round.number}")
        parts.append(f"stage={model.round.stage}")
        parts.append(f"submissions={len(model.round.submissions)}")
    else:
        parts.append("round=none")
    parts.append(f"completed={len(model.completed_rounds)}")
    if model.vote_submitted:
        parts.append("voted")
    if model.error_message:
        parts.append(f"error={model.error_message!r}")
    return " ".join(parts)

@click.group()
@click.option("--log-level", default=None, help="Logging level, defaults to WORDSMOKE_LOG_LEVEL")
def cli(log_level: Optional[str]):
    """Wordsmoke client tools"""
    setup_logging(log_level or settings.LOG_LEVEL)

@cli.command()
@click.argument("game_id")
@click.option("--player-id", required=True, help="Viewer's player id")
@click.option("--token", default=None, help="API bearer token; enables the change channel")
@click.option("--base-url", default=None, help="API base URL")
@click.option("--interval", default=None, type=float, help="Seconds between polls")
def watch(game_id: str, player_id: str, token: Optional[str], base_url: Optional[str], interval: Optional[float]):
    """Follow a game and log its state as it changes"""
    try:
        asyncio.run(_watch(game_id, player_id, token, base_url, interval))
    except KeyboardInterrupt:
        logger.info("Interrupted")

async def _watch(game_id, player_id, token, base_url, interval) -> None:
    api_client = APIClient(base_url=base_url, auth_token=token)
    try:
        game = await api_client.fetch_game(game_id)
    except TRANSPORT_ERRORS as e:
        raise click.ClickException(describe_error(e))

    model = GameRoomModel(game, api_client, player_id)
    last = {"summary": None}

    def log_changes() -> None:
        summary = summarize(model)
        if summary != last["summary"]:
            last["summary"] = summary
            logger.info(summary)

    model.subscribe(log_changes)
    await GameSession(model, interval).run(asyncio.Event())

@cli.command()
@click.argument("guess")
@click.argument("goal")
def marks(guess: str, goal: str):
    """Print letter feedback for GUESS against GOAL"""
    click.echo(" ".join(mark_symbols(guess, goal)))

if __name__ == "__main__":
    cli()
