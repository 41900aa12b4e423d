"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps decisions
consistent regardless of delivery channel.
"""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text

from core.links import conversation_url


def format_notification_text(
    title: str,
    body: str,
    conversation_id: Optional[str],
    is_call: bool,
    url_template: str,
) -> Text:
    """Create the rich text shown by the console sink."""

    text = Text()
    text.append("📞 " if is_call else "💬 ")
    text.append(title, style="bold")
    if body:
        text.append("\n")
        text.append(body)
    link = conversation_url(url_template, conversation_id)
    if link:
        text.append("\n")
        text.append(link, style=f"link {link} dim")
    return text


def notification_payload(
    title: str,
    body: str,
    conversation_id: Optional[str],
    is_call: bool,
    url_template: str,
) -> dict[str, Any]:
    """Create the JSON payload written by the stdio bridge."""

    return {
        "action": "deliverNotification",
        "title": title,
        "body": body,
        "conversationId": conversation_id,
        "isCall": is_call,
        "url": conversation_url(url_template, conversation_id),
    }
