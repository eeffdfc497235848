"""
Polling session for one game room
"""

import asyncio
import logging
from typing import Optional

from wordsmoke.services.game_room_service import GameRoomModel

logger = logging.getLogger(__name__)

class GameSession:
    """Drives a game room model from a timer and the change channel"""

    def __init__(self, model: GameRoomModel, interval: Optional[float] = None):
        self.model = model
        self.interval = interval if interval is not None else model.settings.POLL_INTERVAL

    async def refresh_now(self) -> None:
        """Run one reconciliation pass"""
        await self.model.refresh_round()

    async def run(self, stop_event: asyncio.Event) -> None:
        """Poll until stop_event is set"""
        await self.model.connect_to_game_channel()
        logger.info("Watching game %s every %.1fs", self.model.game.id, self.interval)
        try:
            while not stop_event.is_set():
                await self.refresh_now()
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self.model.disconnect_from_game_channel()
            logger.info("Stopped watching game %s", self.model.game.id)
