"""
Messaging transport seam.

The bot only talks to ``Transport``; concrete transports deliver
``InboundMessage`` objects to ``QuoteBot.handle`` and send replies.
"""

import asyncio
import logging
import sys
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import TextIO

logger = logging.getLogger(__name__)


@dataclass
class InboundMessage:
    """A message received from a client."""

    body: str
    sender_id: str
    display_name: str | None = None
    is_group: bool = False
    timestamp: datetime = field(default_factory=datetime.now)
    message_id: str | None = None
    from_me: bool = False
    is_status: bool = False


@dataclass
class Reply:
    """Text (and optional media) to send back to a recipient."""

    recipient_id: str
    text: str
    media: bytes | None = None
    filename: str | None = None


class Transport(ABC):
    """Outbound side of a messaging channel."""

    @abstractmethod
    async def send_text(self, recipient_id: str, text: str) -> str:
        """Send a text message; returns the message id."""
        pass

    @abstractmethod
    async def send_media(
        self,
        recipient_id: str,
        data: bytes,
        caption: str | None = None,
        filename: str | None = None,
    ) -> str:
        """Send a media message; returns the message id."""
        pass

    async def send(self, reply: Reply) -> str:
        if reply.media is not None:
            return await self.send_media(reply.recipient_id, reply.media, reply.text, reply.filename)
        return await self.send_text(reply.recipient_id, reply.text)


class ConsoleTransport(Transport):
    """Local transport: reads lines from stdin and prints replies."""

    def __init__(self, sender_id: str = "console", display_name: str = "Console", out: TextIO | None = None):
        self.sender_id = sender_id
        self.display_name = display_name
        self.out = out or sys.stdout

    def _new_id(self) -> str:
        return uuid.uuid4().hex

    async def send_text(self, recipient_id: str, text: str) -> str:
        print(f"[to {recipient_id}]\n{text}\n", file=self.out)
        return self._new_id()

    async def send_media(
        self,
        recipient_id: str,
        data: bytes,
        caption: str | None = None,
        filename: str | None = None,
    ) -> str:
        print(f"[to {recipient_id}] <media {filename or 'file'}, {len(data)} bytes>", file=self.out)
        if caption:
            print(f"{caption}\n", file=self.out)
        return self._new_id()

    async def messages(self):
        """Yield one InboundMessage per non-empty input line until EOF."""
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                logger.info("Console input closed")
                return
            line = line.strip()
            if line:
                yield InboundMessage(
                    body=line,
                    sender_id=self.sender_id,
                    display_name=self.display_name,
                )
