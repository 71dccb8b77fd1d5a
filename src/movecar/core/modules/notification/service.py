import asyncio
from collections.abc import Awaitable

import httpx
import structlog

from movecar.core.core import Service
from movecar.core.modules.notification.channels import prepare_meow_local, send_bark, send_meow, send_pushplus
from movecar.core.modules.notification.models import Channel, ChannelResult, DispatchResult, NotificationContent
from movecar.core.modules.notification.telegram import send_telegram
from movecar.errors import NotificationConfigError

logger = structlog.get_logger(__name__)


class NotificationService(Service):
    """Pushes the owner link over every configured channel.

    Delivery is best effort: the caller only needs at least one attempted
    channel, failures are reported per channel and never raised.
    """

    _http_client: httpx.AsyncClient | None = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.core.config.http_timeout_seconds)
        return self._http_client

    def set_http_client(self, client: httpx.AsyncClient) -> None:
        self._http_client = client

    async def on_stop(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def configured_channels(self) -> list[Channel]:
        config = self.core.config
        channels: list[Channel] = []
        if config.bark_url:
            channels.append(Channel.BARK)
        if config.pushplus_token:
            channels.append(Channel.PUSHPLUS)
        if config.meow_nickname:
            channels.append(Channel.MEOW_LOCAL if config.meow_local_send else Channel.MEOW)
        if config.telegram_bot_token and config.telegram_chat_id:
            channels.append(Channel.TELEGRAM)
        return channels

    def ensure_configured(self) -> None:
        if not self.configured_channels():
            raise NotificationConfigError

    async def dispatch(self, content: NotificationContent) -> DispatchResult:
        """Send to all channels concurrently and collect per-channel results.

        Never raises once channels are configured: the session is already saved
        and other channels may already have delivered the link.
        """
        config = self.core.config
        self.ensure_configured()

        channels: list[Channel] = []
        tasks: list[Awaitable[ChannelResult]] = []
        if config.bark_url:
            channels.append(Channel.BARK)
            tasks.append(send_bark(self.http_client, config.bark_url, content))
        if config.pushplus_token:
            channels.append(Channel.PUSHPLUS)
            tasks.append(send_pushplus(self.http_client, config.pushplus_token, content))
        if config.meow_nickname and not config.meow_local_send:
            channels.append(Channel.MEOW)
            tasks.append(send_meow(self.http_client, config, content))
        if config.telegram_bot_token and config.telegram_chat_id:
            channels.append(Channel.TELEGRAM)
            tasks.append(send_telegram(config.telegram_bot_token, config.telegram_chat_id, content, config.http_timeout_seconds))

        results: list[ChannelResult] = []
        for channel, outcome in zip(channels, await asyncio.gather(*tasks, return_exceptions=True), strict=True):
            if isinstance(outcome, Exception):
                logger.error("notification_send_crashed", channel=channel, error=repr(outcome))
                outcome = ChannelResult(service=channel, success=False, detail=f"{type(outcome).__name__}: {outcome}")
            elif isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)

        local_request = None
        if config.meow_nickname and config.meow_local_send:
            local_request, local_result = prepare_meow_local(config, content)
            results.append(local_result)

        dispatch = DispatchResult(results=results, local_request=local_request)
        failed = [result.service for result in results if not result.success]
        if failed:
            logger.warning("notification_partial_failure", failed=failed, attempted=len(results))
        else:
            logger.info("notification_dispatched", channels=[result.service for result in results])
        return dispatch
