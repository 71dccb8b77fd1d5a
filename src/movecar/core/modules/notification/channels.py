"""HTTP push channels: Bark, PushPlus and MeoW."""

from urllib.parse import quote

import httpx
import structlog

from movecar.config import Config
from movecar.core.modules.notification.models import Channel, ChannelResult, LocalSendRequest, NotificationContent
from movecar.core.modules.notification.rendering import render_html, render_html_page, render_text, render_text_with_link

logger = structlog.get_logger(__name__)

PUSHPLUS_URL = "http://www.pushplus.plus/send"
BARK_ICON = "https://cdn-icons-png.flaticon.com/512/741/741407.png"


def _check_response(channel: Channel, response: httpx.Response) -> ChannelResult:
    text = response.text
    if response.is_success:
        logger.debug("notification_sent", channel=channel, status_code=response.status_code)
        return ChannelResult(service=channel, success=True, status_code=response.status_code, detail=text[:200])
    logger.warning("notification_rejected", channel=channel, status_code=response.status_code, body=text[:200])
    return ChannelResult(service=channel, success=False, status_code=response.status_code, detail=text[:200])


def _transport_failure(channel: Channel, error: httpx.HTTPError) -> ChannelResult:
    logger.exception("notification_failed", channel=channel, error=str(error))
    return ChannelResult(service=channel, success=False, detail=f"{type(error).__name__}: {error}")


def _unexpected_failure(channel: Channel, error: Exception) -> ChannelResult:
    # Misconfigured channel settings, such as a malformed URL, land here
    logger.exception("notification_error", channel=channel, error=str(error))
    return ChannelResult(service=channel, success=False, detail=f"{type(error).__name__}: {error}")


async def send_bark(client: httpx.AsyncClient, bark_url: str, content: NotificationContent) -> ChannelResult:
    """Critical-level Bark push whose tap opens the confirm link."""
    url = f"{bark_url.rstrip('/')}/{quote(content.title, safe='')}/{quote(render_text(content), safe='')}"
    params = {
        "group": "MoveCar",
        "level": "critical",
        "call": "1",
        "sound": "minuet",
        "icon": BARK_ICON,
        "url": content.confirm_url,
    }
    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        return _transport_failure(Channel.BARK, e)
    except Exception as e:
        return _unexpected_failure(Channel.BARK, e)
    return _check_response(Channel.BARK, response)


async def send_pushplus(client: httpx.AsyncClient, token: str, content: NotificationContent) -> ChannelResult:
    payload = {
        "token": token,
        "title": content.title,
        "content": render_html(content),
        "template": "html",
        "channel": "wechat",
    }
    try:
        response = await client.post(PUSHPLUS_URL, json=payload)
    except httpx.HTTPError as e:
        return _transport_failure(Channel.PUSHPLUS, e)
    except Exception as e:
        return _unexpected_failure(Channel.PUSHPLUS, e)
    return _check_response(Channel.PUSHPLUS, response)


def build_meow_request(config: Config, content: NotificationContent) -> LocalSendRequest:
    """Prepare the MeoW request; sent by the server or handed to the client for local send.

    Raises httpx.InvalidURL when the configured base URL or nickname do not form a URL.
    """
    if not config.meow_nickname:
        raise ValueError("MeoW nickname is not configured")
    params = {"msgType": config.meow_msg_type}
    if config.meow_msg_type == "html":
        params["htmlHeight"] = str(config.meow_html_height)
        msg = render_html_page(content)
    else:
        msg = render_text_with_link(content)
    url = httpx.URL(f"{config.meow_base_url.rstrip('/')}/{quote(config.meow_nickname, safe='')}", params=params)
    return LocalSendRequest(
        url=str(url),
        headers={"Content-Type": "application/json; charset=utf-8"},
        body={"title": content.title, "msg": msg, "url": content.confirm_url},
    )


def prepare_meow_local(config: Config, content: NotificationContent) -> tuple[LocalSendRequest | None, ChannelResult]:
    """Build the request the requester's browser sends itself, reported like any other channel."""
    try:
        request = build_meow_request(config, content)
    except Exception as e:
        return None, _unexpected_failure(Channel.MEOW_LOCAL, e)
    return request, ChannelResult(service=Channel.MEOW_LOCAL, success=True, status_code=0, detail="CLIENT_SEND")


async def send_meow(client: httpx.AsyncClient, config: Config, content: NotificationContent) -> ChannelResult:
    try:
        request = build_meow_request(config, content)
        response = await client.post(request.url, headers=request.headers, json=request.body)
    except httpx.HTTPError as e:
        return _transport_failure(Channel.MEOW, e)
    except Exception as e:
        return _unexpected_failure(Channel.MEOW, e)
    return _check_response(Channel.MEOW, response)
