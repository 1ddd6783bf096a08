import logging
from typing import List, Optional

from ..context import PluginContext
from ..extractors import extract_multiple_token_denoms, extract_token_denom
from ..formatting import format_price
from ..types.market import PriceBatch, TokenPrice
from .base import Action, AgentRuntime, Message, ReplyCallback, guarded, respond, respond_failure

logger = logging.getLogger(__name__)

ESTIMATE_NOTE = "*Note: live prices are unavailable right now, so this is a recent estimate.*"


def _price_line(price: TokenPrice) -> str:
    suffix = " (estimated)" if price.is_estimated else ""
    return f"{price.symbol}: {format_price(price.price)}{suffix}"


def price_actions(ctx: PluginContext) -> List[Action]:

    @guarded("GET_TOKEN_PRICE", "retrieving the token price data")
    async def get_token_price(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        denom = extract_token_denom(message.text)
        if not denom:
            await respond(
                callback,
                "I'd be happy to check the price of a token for you. Which token are you interested in? "
                "For example, you can ask about INJ, BTC or ETH.",
            )
            return True

        await respond(callback, f"I'll check the current price of {denom.upper()}. One moment please...")

        envelope = await ctx.coingecko.get_token_price(denom)
        if not envelope.success:
            await respond_failure(callback, envelope, f"I couldn't retrieve the price data for {denom.upper()}")
            return True

        price: TokenPrice = envelope.result
        text = f"The current price of {denom.upper()} is {format_price(price.price)}."
        if price.is_estimated:
            text += f"\n\n{ESTIMATE_NOTE}"
        await respond(callback, text, price.model_dump())
        return True

    @guarded("GET_MULTIPLE_TOKEN_PRICES", "retrieving the token price data")
    async def get_multiple_token_prices(
        runtime: AgentRuntime,
        message: Message,
        callback: Optional[ReplyCallback] = None,
    ) -> bool:
        denoms = extract_multiple_token_denoms(message.text)
        if not denoms:
            await respond(
                callback,
                "I'd be happy to check several prices for you. Which tokens are you interested in? "
                "For example: 'prices of BTC, ETH and INJ'.",
            )
            return True

        await respond(
            callback,
            f"I'll check the current prices of {', '.join(d.upper() for d in denoms)}. One moment please...",
        )

        envelope = await ctx.coingecko.get_multiple_token_prices(denoms)
        if not envelope.success:
            await respond_failure(callback, envelope, "I couldn't retrieve the price data for the requested tokens")
            return True

        batch: PriceBatch = envelope.result
        lines = ["Here are the current token prices:", ""]
        lines.extend(f"- {_price_line(price)}" for price in batch.prices.values())
        if batch.errors:
            lines.append("")
            lines.append(f"I couldn't find prices for: {', '.join(d.upper() for d in batch.errors)}")
        if any(price.is_estimated for price in batch.prices.values()):
            lines.extend(["", ESTIMATE_NOTE])

        await respond(callback, "\n".join(lines), batch.model_dump())
        return True

    return [
        Action(
            name="GET_TOKEN_PRICE",
            description="Get the current USD price of a specific token",
            handler=get_token_price,
            similes=[
                "SHOW_TOKEN_PRICE",
                "CHECK_TOKEN_PRICE",
                "FETCH_TOKEN_PRICE",
                "GET_PRICE",
                "CHECK_PRICE",
                "PRICE_CHECK",
                "TOKEN_PRICE",
                "CRYPTO_PRICE",
                "HOW_MUCH_IS",
                "CURRENT_PRICE",
                "PRICE_OF",
            ],
            examples=[
                [
                    {"user": "user", "content": {"text": "What's the price of INJ?"}},
                    {"user": "assistant", "content": {"text": "The current price of INJ is $13.16.", "action": "GET_TOKEN_PRICE"}},
                ]
            ],
        ),
        Action(
            name="GET_MULTIPLE_TOKEN_PRICES",
            description="Get the current USD prices of several tokens at once",
            handler=get_multiple_token_prices,
            similes=[
                "SHOW_MULTIPLE_PRICES",
                "CHECK_MULTIPLE_PRICES",
                "COMPARE_PRICES",
                "MULTIPLE_PRICES",
                "TOKEN_PRICES",
                "PRICES_OF",
            ],
            examples=[
                [
                    {"user": "user", "content": {"text": "What are the prices of BTC, ETH and INJ?"}},
                    {
                        "user": "assistant",
                        "content": {"text": "Here are the current token prices:", "action": "GET_MULTIPLE_TOKEN_PRICES"},
                    },
                ]
            ],
        ),
    ]
