"""Google Generative AI (Cloud Code backend) translation helpers.

Provides translation between the Anthropic Messages API format and the
Google generateContent format used by the Cloud Code backend, in both
directions, plus a stream adapter from backend chunks to Anthropic events.
"""

from .request_converter import convert_anthropic_to_google, normalize_tool_name
from .response_converter import convert_google_to_anthropic
from .stream_adapter import (
    GoogleToMessagesStreamAdapter,
    adapt_google_stream_to_messages,
)

__all__ = [
    "convert_anthropic_to_google",
    "convert_google_to_anthropic",
    "GoogleToMessagesStreamAdapter",
    "adapt_google_stream_to_messages",
    "normalize_tool_name",
]
