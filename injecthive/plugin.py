"""
Plugin entry point.

The host agent calls ``build_plugin`` once with a factory for its Injective SDK
client, then dispatches chat messages to the returned plugin by action name.
"""

import logging
from typing import List, Optional

import httpx

from .actions import (
    Action,
    ActionRegistry,
    AgentRuntime,
    Message,
    ReplyCallback,
    defillama_actions,
    explorer_actions,
    price_actions,
    swap_actions,
    transfer_actions,
    wallet_actions,
)
from .config import Settings, settings as default_settings
from .context import PluginContext
from .extractors import IntentExtractor, RegexIntentExtractor
from .providers.injective import ClientFactory
from .types.intent import IntentKind

logger = logging.getLogger(__name__)

PLUGIN_NAME = "injecthive"
PLUGIN_DESCRIPTION = (
    "Injective blockchain actions: balances, prices, TVL, explorer data, portfolio, transfers and Helix swaps"
)

# Action used when an intent is recognised without an explicit action name
INTENT_ACTIONS = {
    IntentKind.BALANCE: "GET_BANK_BALANCES",
    IntentKind.PRICE: "GET_TOKEN_PRICE",
    IntentKind.SWAP: "SWAP_TOKENS",
    IntentKind.PROTOCOL_INFO: "GET_PROTOCOL_INFO",
}


class InjecthivePlugin:
    name = PLUGIN_NAME
    description = PLUGIN_DESCRIPTION

    def __init__(self, context: PluginContext, registry: ActionRegistry, extractor: Optional[IntentExtractor] = None):
        self.context = context
        self.registry = registry
        self.extractor = extractor or RegexIntentExtractor()

    @property
    def actions(self) -> List[Action]:
        return self.registry.list_actions()

    async def handle(
        self,
        action_name: str,
        runtime: AgentRuntime,
        message: Message,
        callback: Optional[ReplyCallback] = None,
    ) -> bool:
        return await self.registry.dispatch(action_name, runtime, message, callback)

    def route(self, text: str) -> Optional[str]:
        """Action name for free text, or ``None`` when no intent is recognised."""
        intent = self.extractor.extract(text)
        if intent is None:
            return None
        if intent.kind == IntentKind.TRANSFER:
            return "SEND_INJ" if intent.params.get("token") == "inj" else "SEND_TOKEN"
        return INTENT_ACTIONS.get(intent.kind)

    async def aclose(self) -> None:
        await self.context.aclose()


def build_plugin(
    client_factory: ClientFactory,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    extractor: Optional[IntentExtractor] = None,
) -> InjecthivePlugin:
    """Wire providers, caches and every action into a plugin instance.

    Logging is left to the host: call ``injecthive.setup_logging()`` once at
    startup to get the structured package log output.
    """
    context = PluginContext(settings or default_settings, client_factory, http_client=http_client)

    registry = ActionRegistry()
    for group in (price_actions, defillama_actions, wallet_actions, explorer_actions, transfer_actions, swap_actions):
        for action in group(context):
            registry.register(action)

    logger.info("Registered %d injecthive actions", len(registry))
    return InjecthivePlugin(context, registry, extractor)
