"""Host session interface consumed by the bridge, plus a standalone host.

The bridge never reaches into the host application directly. Everything
it needs (UI notifications, a status indicator, the two delivery queues
and the working directory) goes through ``HostHandle``, so a host
application, a test fake, or ``StandaloneHost`` can sit behind it.
"""

import logging
import os
from collections import deque
from dataclasses import dataclass, field
from typing import Literal, Protocol

from .protocol_constants import CONTEXT_CUSTOM_TYPE

logger = logging.getLogger(__name__)

NotifyLevel = Literal["info", "error"]


class HostHandle(Protocol):
    def notify(self, message: str, level: NotifyLevel) -> None: ...

    def set_status(self, key: str, text: str) -> None: ...

    def inject_context_message(self, content: str) -> None:
        """Queue *content* for delivery at the start of the host's next turn."""
        ...

    def inject_follow_up(self, content: str) -> None:
        """Queue *content* as a user message right after the current turn."""
        ...

    def current_working_directory(self) -> str: ...


@dataclass
class InjectedMessage:
    content: str
    deliver_as: Literal["nextTurn", "followUp"]
    custom_type: str | None = None
    display: bool = True


@dataclass
class StandaloneHost:
    """A ``HostHandle`` for running the bridge without a host application.

    Notifications and status go to the log; injected messages are kept in
    memory until a consumer drains them.
    """

    cwd: str = field(default_factory=os.getcwd)
    status: dict[str, str] = field(default_factory=dict)
    context_messages: deque[InjectedMessage] = field(default_factory=deque)
    follow_ups: deque[InjectedMessage] = field(default_factory=deque)

    def notify(self, message: str, level: NotifyLevel = "info") -> None:
        if level == "error":
            logger.error("%s", message)
        else:
            logger.info("%s", message)

    def set_status(self, key: str, text: str) -> None:
        self.status[key] = text
        logger.debug("Status %s = %s", key, text)

    def inject_context_message(self, content: str) -> None:
        self.context_messages.append(
            InjectedMessage(content=content, deliver_as="nextTurn", custom_type=CONTEXT_CUSTOM_TYPE)
        )

    def inject_follow_up(self, content: str) -> None:
        self.follow_ups.append(InjectedMessage(content=content, deliver_as="followUp"))

    def current_working_directory(self) -> str:
        return self.cwd

    def drain(self) -> list[InjectedMessage]:
        """Pop every queued message, context messages first."""
        drained = list(self.context_messages) + list(self.follow_ups)
        self.context_messages.clear()
        self.follow_ups.clear()
        return drained
