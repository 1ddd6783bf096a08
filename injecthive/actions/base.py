"""
Action plumbing shared by every chat command.

An action pairs a name (plus similes the agent may use for it) with an async
handler. Handlers reply through the callback the runtime passes in and never
let an exception escape into the conversation loop.
"""

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from ..config import ConfigurationError
from ..logging_config import bind_action_context
from ..types.envelope import Failure
from ..types.reply import Reply

logger = logging.getLogger(__name__)


class AgentRuntime(Protocol):
    def get_setting(self, key: str) -> Optional[str]:
        ...


@dataclass
class Message:
    """Incoming chat message."""
    text: str
    user: str = "user"


ReplyCallback = Callable[[Reply], Awaitable[None]]
Handler = Callable[[AgentRuntime, Message, Optional[ReplyCallback]], Awaitable[bool]]
Validator = Callable[[AgentRuntime, Message], Awaitable[bool]]


async def always_valid(runtime: AgentRuntime, message: Message) -> bool:
    return True


@dataclass
class Action:
    name: str
    description: str
    handler: Handler
    similes: List[str] = field(default_factory=list)
    examples: List[List[Dict[str, Any]]] = field(default_factory=list)
    validate: Validator = always_valid


class ActionRegistry:
    """Actions the plugin exposes, addressable by name or simile."""

    def __init__(self):
        self._actions: Dict[str, Action] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, action: Action) -> None:
        self._actions[action.name] = action
        for simile in action.similes:
            self._aliases.setdefault(simile, action.name)

    def get(self, name: str) -> Optional[Action]:
        """Look up an action by its name, falling back to similes."""
        key = name.upper()
        if key in self._actions:
            return self._actions[key]
        alias = self._aliases.get(key)
        return self._actions.get(alias) if alias else None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def list_actions(self) -> List[Action]:
        return list(self._actions.values())

    def __len__(self) -> int:
        return len(self._actions)

    async def dispatch(
        self,
        name: str,
        runtime: AgentRuntime,
        message: Message,
        callback: Optional[ReplyCallback] = None,
    ) -> bool:
        """Run the named action; unknown names and failed validation return ``False``."""
        action = self.get(name)
        if action is None:
            logger.warning("Unknown action requested: %s", name)
            return False
        if not await action.validate(runtime, message):
            return False
        return await action.handler(runtime, message, callback)


async def respond(callback: Optional[ReplyCallback], text: str, content: Any = None) -> None:
    if callback is not None:
        await callback(Reply(text=text, content=content))


async def respond_failure(callback: Optional[ReplyCallback], failure: Failure, prefix: str) -> None:
    """Relay a gateway failure to the user, keeping its error in ``content``."""
    await respond(callback, f"{prefix}: {failure.message}", {"error": failure.error.model_dump()})


def guarded(action_name: str, activity: str):
    """Wrap a handler so errors become an apology reply instead of an exception.

    ``activity`` completes "while ...", e.g. ``"fetching the token price"``.
    """

    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        async def wrapper(
            runtime: AgentRuntime,
            message: Message,
            callback: Optional[ReplyCallback] = None,
        ) -> bool:
            bind_action_context(action_name)
            logger.info("Action %s triggered", action_name)
            try:
                return await func(runtime, message, callback)
            except ConfigurationError as e:
                logger.error("%s cannot run: %s", action_name, e)
                await respond(
                    callback,
                    f"I couldn't complete this because the Injective client is not configured. {e}",
                    {"error": {"code": "ConfigurationError", "message": str(e)}},
                )
                return True
            except Exception as e:
                logger.exception("Error in %s handler", action_name)
                await respond(
                    callback,
                    f"I'm sorry, I encountered an error while {activity}. Please try again later.",
                    {"error": {"code": f"{action_name.title().replace('_', '')}Error", "message": str(e)}},
                )
                return True

        return wrapper

    return decorator
