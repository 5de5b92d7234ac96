"""Email transport that logs the hand-off instead of delivering."""

from __future__ import annotations

import html as html_lib
import logging
import uuid
from typing import Optional

from .base import EmailTransport, ProviderResponse

logger = logging.getLogger(__name__)


def render_html(text: str) -> str:
    """Wrap a plain-text body in a minimal HTML document."""
    body = html_lib.escape(text).replace("\n", "<br>")
    return (
        '<html><body style="font-family: Arial, sans-serif; line-height: 1.6;">'
        f'<div style="max-width: 600px; margin: 0 auto; padding: 20px;">{body}</div>'
        "</body></html>"
    )


class LoggingEmailTransport(EmailTransport):
    """Fire-and-forget transport: records the email in the log only.

    A production deployment binds a real transport implementing
    :class:`EmailTransport`.
    """

    async def send_email(
        self,
        from_email: str,
        to_email: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
    ) -> ProviderResponse:
        message_id = f"log-{uuid.uuid4().hex}"
        logger.info(
            f"Email handed off message_id={message_id} from={from_email} "
            f"to={to_email} subject={subject!r} length={len(text)}"
        )
        return ProviderResponse(
            ok=True, provider_id=message_id, data={"recipient": to_email}
        )
