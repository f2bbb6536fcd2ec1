"""Authentication module for the relay."""

from .provider import RelayAuthProvider, extract_credential

__all__ = ["RelayAuthProvider", "extract_credential"]
