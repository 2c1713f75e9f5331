# keyaudit/binance_api.py
"""
Binance access for the key auditor.

- fetch_permissions signs GET /sapi/v1/account/apiRestrictions through the
  binance-connector Spot client and returns a PermissionSnapshot.
- Any failure is raised as FetchError; the rule engine is never called with
  partial data.
- lookup_public_ip helps the user troubleshoot IP whitelist rejections.
"""

import logging
from typing import Any, Dict, Optional

import requests
from binance.error import ClientError, ServerError
from binance.spot import Spot

from config import BINANCE_BASE_URL, PUBLIC_IP_URL, REQUEST_TIMEOUT_SECONDS
from models import PermissionSnapshot

logger = logging.getLogger(__name__)

# Binance error codes with dedicated handling
ERROR_BAD_API_KEY_FORMAT = -2008
ERROR_REJECTED_MBX_KEY = -2015


class FetchError(Exception):
    """
    The permission snapshot could not be retrieved.

    Fields:
    - kind: missing_credentials | invalid_key | rejected | api_error | network
    - code: Binance error code, when Binance returned one
    - message: human-readable detail
    """

    def __init__(self, kind: str, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.kind} ({self.code}): {self.message}"
        return f"{self.kind}: {self.message}"


def make_client(api_key: str, api_secret: str, base_url: str = BINANCE_BASE_URL,
                timeout: int = REQUEST_TIMEOUT_SECONDS) -> Spot:
    return Spot(api_key=api_key, api_secret=api_secret, base_url=base_url, timeout=timeout)


def classify_client_error(e: ClientError) -> FetchError:
    """
    Map a Binance ClientError to a FetchError kind.
    """
    if e.error_code == ERROR_BAD_API_KEY_FORMAT:
        kind = "invalid_key"
    elif e.error_code == ERROR_REJECTED_MBX_KEY:
        kind = "rejected"
    else:
        kind = "api_error"
    return FetchError(kind, str(e.error_message), code=e.error_code)


def fetch_permissions(api_key: str, api_secret: str, client: Optional[Any] = None) -> PermissionSnapshot:
    """
    Retrieve the permission flags of an API key.

    The credentials only live in this call and the client it builds.
    Pass `client` to reuse or stub the Spot client.
    """
    if not api_key or not api_secret:
        raise FetchError("missing_credentials", "Both the API key and the secret key are required.")

    if client is None:
        client = make_client(api_key, api_secret)

    logger.debug("Requesting API key permissions")
    try:
        data: Dict[str, Any] = client.api_key_permission()
    except ClientError as e:
        raise classify_client_error(e) from e
    except ServerError as e:
        raise FetchError("api_error", f"Server error {e.status_code}: {e.message}") from e
    except requests.exceptions.RequestException as e:
        raise FetchError("network", str(e)) from e

    if not isinstance(data, dict):
        raise FetchError("api_error", f"Unexpected response: {data!r}")

    snapshot = PermissionSnapshot.from_api(data)
    logger.info("Fetched %d permission flags", len(snapshot))
    return snapshot


def lookup_public_ip(url: str = PUBLIC_IP_URL, timeout: int = REQUEST_TIMEOUT_SECONDS) -> Optional[str]:
    """
    Return the caller's public IP, or None if it cannot be determined.
    """
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Failed to fetch public IP: %s", e)
        return None
    if not isinstance(payload, dict) or not isinstance(payload.get("ip"), str):
        logger.warning("Unexpected public IP response: %r", payload)
        return None
    return payload["ip"]
