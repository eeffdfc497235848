"""
Action Cable change-notification channel
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

import websockets
from websockets.exceptions import WebSocketException

logger = logging.getLogger(__name__)

# Frames that belong to the Action Cable protocol rather than the channel
PROTOCOL_FRAME_TYPES = {"welcome", "ping", "confirm_subscription", "reject_subscription", "disconnect"}

MessageHandler = Callable[[Dict[str, Any]], None]

class GameChannelClient:
    """Websocket client that forwards channel messages to a handler"""

    def __init__(self, url: str, on_message: Optional[MessageHandler] = None, connect: Callable[..., Any] = websockets.connect):
        self.url = url
        self.on_message = on_message
        self._connect = connect
        self._connection: Any = None
        self._listener: Optional[asyncio.Task] = None
        # Identifiers to (re)subscribe once the socket is open
        self._identifiers: list = []

    @property
    def is_connected(self) -> bool:
        return self._listener is not None and not self._listener.done()

    async def connect(self) -> None:
        """Open the socket and start listening; a live connection is kept"""
        if self.is_connected:
            return
        await self.disconnect()
        self._listener = asyncio.create_task(self._listen())

    async def disconnect(self) -> None:
        """Stop listening and close the socket"""
        listener, self._listener = self._listener, None
        if listener is not None and not listener.done():
            listener.cancel()
            try:
                await listener
            except asyncio.CancelledError:
                pass
        connection, self._connection = self._connection, None
        if connection is not None:
            await connection.close()

    async def subscribe(self, identifier: str) -> None:
        """Subscribe to a channel identifier"""
        if identifier not in self._identifiers:
            self._identifiers.append(identifier)
        if self._connection is not None:
            await self.send({"command": "subscribe", "identifier": identifier})

    async def send(self, payload: Dict[str, Any]) -> None:
        """Send one JSON command frame"""
        if self._connection is None:
            return
        try:
            await self._connection.send(json.dumps(payload))
        except (WebSocketException, OSError) as e:
            logger.warning("Game channel send failed: %s", e)

    def handle_text(self, text: str) -> None:
        """Dispatch one received frame"""
        try:
            payload = json.loads(text)
        except ValueError:
            return
        if not isinstance(payload, dict) or payload.get("type") in PROTOCOL_FRAME_TYPES:
            return
        message = payload.get("message")
        if isinstance(message, dict) and self.on_message is not None:
            self.on_message(message)

    async def _listen(self) -> None:
        try:
            async with self._connect(self.url) as connection:
                self._connection = connection
                for identifier in self._identifiers:
                    await self.send({"command": "subscribe", "identifier": identifier})
                async for raw in connection:
                    if isinstance(raw, bytes):
                        raw = raw.decode("utf-8", errors="replace")
                    self.handle_text(raw)
        except (WebSocketException, OSError) as e:
            logger.warning("Game channel receive failed: %s", e)
        finally:
            self._connection = None
