"""
API key extraction and issuance.

Clients authenticate every request with a long-lived API key sent as:

    Authorization: APIKEY <token>

The scheme keyword is fixed and case-sensitive, and the token is strictly
alphanumeric. Keys are issued by generate_api_key() as hex strings, so
every issued key survives extraction unchanged.
"""

import logging
import re
import secrets
from collections.abc import Mapping

from taskmanager.config import settings
from taskmanager.exceptions import MalformedCredential, MissingCredential

logger = logging.getLogger(__name__)

AUTH_HEADER = "Authorization"
API_KEY_SCHEME = "APIKEY"

_API_KEY_HEADER = re.compile(rf"^{API_KEY_SCHEME}\s+([a-zA-Z0-9]+)$")


def extract_api_key(headers: Mapping[str, str]) -> str:
    """
    Pull the raw API key out of the request headers.

    Args:
        headers: Request headers. Starlette's Headers is case-insensitive;
            a plain dict must use the canonical "Authorization" key.

    Returns:
        The token portion of "APIKEY <token>".

    Raises:
        MissingCredential: The header is absent or blank.
        MalformedCredential: The header is not "APIKEY <alphanumeric token>".
    """
    value = (headers.get(AUTH_HEADER) or "").strip()
    if not value:
        raise MissingCredential()

    match = _API_KEY_HEADER.match(value)
    if match is None:
        scheme = value.split(None, 1)[0]
        reason = (
            f"unexpected scheme {scheme!r}"
            if scheme != API_KEY_SCHEME
            else "token is not alphanumeric"
        )
        raise MalformedCredential(reason)

    return match.group(1)


def generate_api_key(num_bytes: int | None = None) -> str:
    """Issue a new random API key (hex-encoded, so always alphanumeric)."""
    return secrets.token_hex(num_bytes or settings.API_KEY_BYTES)
