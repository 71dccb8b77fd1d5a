"""Telegram channel via the Bot API."""

import structlog
from telegram import Bot, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.request import HTTPXRequest

from movecar.core.modules.notification.models import Channel, ChannelResult, NotificationContent
from movecar.core.modules.notification.rendering import render_html

logger = structlog.get_logger(__name__)


def render_telegram(content: NotificationContent) -> str:
    # Telegram HTML has no <br>, plain newlines instead
    return f"<b>{content.title}</b>\n" + render_html(content).replace("<br>", "\n")


async def send_telegram(token: str, chat_id: str, content: NotificationContent, timeout: float = 10.0) -> ChannelResult:
    """Post the request to a chat; failures are reported in the result, never raised."""
    try:
        bot = Bot(token=token, request=HTTPXRequest(connect_timeout=timeout, read_timeout=timeout))
        async with bot:
            message = await bot.send_message(
                chat_id=chat_id,
                text=render_telegram(content),
                parse_mode=ParseMode.HTML,
                link_preview_options=LinkPreviewOptions(is_disabled=True),
            )
    except TelegramError as e:
        logger.exception("telegram_send_failed", chat_id=chat_id, error=str(e))
        return ChannelResult(service=Channel.TELEGRAM, success=False, detail=str(e))
    except Exception as e:
        logger.exception("telegram_send_error", chat_id=chat_id, error=str(e))
        return ChannelResult(service=Channel.TELEGRAM, success=False, detail=f"{type(e).__name__}: {e}")
    logger.debug("telegram_message_sent", chat_id=chat_id, message_id=message.message_id)
    return ChannelResult(service=Channel.TELEGRAM, success=True, detail=str(message.message_id))
