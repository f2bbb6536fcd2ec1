"""Session id derivation for Cloud Code prompt caching.

The backend scopes its prompt cache to a session, so every turn of one
conversation has to send the same session id. The id is derived from the
first user message, which stays stable as the conversation grows.
"""

import hashlib
import uuid
from typing import Any, Mapping, Optional


def _user_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            block["text"]
            for block in content
            if isinstance(block, Mapping) and block.get("type") == "text" and block.get("text")
        )
    return ""


def derive_session_id(
    request: Mapping[str, Any],
    account_email: Optional[str] = None,
) -> str:
    """Derive a stable session id from the first user message.

    The account email salts the hash so the same conversation replayed on a
    different account gets an unrelated id.

    Args:
        request: Anthropic Messages request body
        account_email: Email of the account serving the request

    Returns:
        32 lowercase hex characters, or a random UUID when no user message
        carries any text
    """
    for message in request.get("messages") or []:
        if not isinstance(message, Mapping) or message.get("role") != "user":
            continue
        text = _user_text(message.get("content"))
        if text:
            salted = f"{account_email}:{text}" if account_email else text
            return hashlib.sha256(salted.encode("utf-8")).hexdigest()[:32]

    return str(uuid.uuid4())
