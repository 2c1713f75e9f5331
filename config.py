"""
Central configuration and tunable constants.

- Binance endpoint and timeout can be overridden by environment variables.
- Credentials are read from the environment (or a .env file) when present;
  otherwise the CLI prompts for them.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

def get_env(key, default, cast_func=str):
    """
    Read an environment override, falling back to `default` when unset or invalid.
    """
    val = os.getenv(key)
    if val is None:
        return default
    try:
        return cast_func(val)
    except ValueError:
        logger.warning("Invalid config %s=%r, using default %r", key, val, default)
        return default

def positive_int(val: str) -> int:
    number = int(val)
    if number <= 0:
        raise ValueError(f"expected a positive integer, got {val}")
    return number

# Binance REST API. The key permission endpoint lives under /sapi.
BINANCE_BASE_URL = get_env("BINANCE_BASE_URL", "https://api.binance.com")
REQUEST_TIMEOUT_SECONDS = get_env("BINANCE_TIMEOUT", 5, positive_int)

# Used to help troubleshoot IP whitelist rejections
PUBLIC_IP_URL = "https://api.ipify.org?format=json"

# Non-permission field in the apiRestrictions response
SNAPSHOT_METADATA_FIELD = "createTime"

# Environment variables consulted before prompting
ENV_API_KEY = "BINANCE_API_KEY"
ENV_API_SECRET = "BINANCE_API_SECRET"

DEFAULT_REPORT_DIR = "reports"
