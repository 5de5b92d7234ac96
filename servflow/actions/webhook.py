"""Outbound webhook action."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

import httpx

from ..constants import DEFAULT_HTTP_METHOD
from ..contracts import Action, ActionType
from ..errors import InvalidConfig, ProviderError
from .base import ActionContext, BaseAction

logger = logging.getLogger(__name__)

_BODYLESS_METHODS = {"GET", "HEAD"}


class WebhookAction(BaseAction):
    """Send an HTTP request with an interpolated JSON body."""

    action_type = ActionType.WEBHOOK
    required_fields = ("url",)

    def prepare(self, config: Dict[str, Any]) -> Dict[str, Any]:
        # a JSON body template is parsed before interpolation so trigger
        # values only ever land in string leaves
        body = config.get("body")
        if isinstance(body, str):
            try:
                config["body"] = json.loads(body)
            except ValueError:
                logger.debug("Webhook body template is not JSON; sending it as text")
        return config

    def _request_kwargs(self, config: Dict[str, Any], method: str) -> Dict[str, Any]:
        headers = config.get("headers") or {}
        if not isinstance(headers, dict):
            raise InvalidConfig(self.action_type.value, ["headers"])
        kwargs: Dict[str, Any] = {"headers": {k: str(v) for k, v in headers.items()}}

        body = config.get("body")
        if body is None or method in _BODYLESS_METHODS:
            return kwargs
        if isinstance(body, str):
            kwargs["content"] = body
        else:
            kwargs["json"] = body
        return kwargs

    async def _send(
        self, client: httpx.AsyncClient, method: str, url: str, kwargs: Dict[str, Any]
    ) -> httpx.Response:
        try:
            return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError(f"Webhook {url} timed out") from e
        except httpx.RequestError as e:
            raise ProviderError(f"Webhook {url} request failed", detail=str(e)) from e

    async def execute(
        self, config: Dict[str, Any], action: Action, context: ActionContext
    ) -> Dict[str, Any]:
        url = config["url"]
        method = str(config.get("method") or DEFAULT_HTTP_METHOD).upper()
        kwargs = self._request_kwargs(config, method)

        if context.http_client is not None:
            response = await self._send(context.http_client, method, url, kwargs)
        else:
            async with httpx.AsyncClient(
                timeout=context.config.webhook.timeout
            ) as client:
                response = await self._send(client, method, url, kwargs)

        if not response.is_success:
            logger.warning(
                f"Webhook {method} {url} returned HTTP {response.status_code}"
            )
            raise ProviderError(
                "Webhook returned non-success response",
                status_code=response.status_code,
                detail=response.text[:200],
            )
        return {"status_code": response.status_code}
