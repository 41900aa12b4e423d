"""Deep links into the chat site."""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from core.models import SENTINEL_TAGS


def conversation_url(template: str, conversation_id: Optional[str]) -> Optional[str]:
    """Return the conversation URL, or None when there is nothing to open.

    Sentinel tags never name a real conversation and must not be navigated to.
    """

    if not conversation_id or conversation_id in SENTINEL_TAGS:
        return None
    return template.format(conversation_id=quote(conversation_id, safe=""))
