"""
Studio CRM Configuration
Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    return raw.strip().lower() in _TRUE_VALUES


class Config:
    """Application configuration."""

    # Display
    CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', '$')

    # Dashboard list caps
    UPCOMING_LIMIT = int(os.getenv('UPCOMING_LIMIT', '5'))
    TOP_CLIENTS_LIMIT = int(os.getenv('TOP_CLIENTS_LIMIT', '5'))
    TOP_REFERRERS_LIMIT = int(os.getenv('TOP_REFERRERS_LIMIT', '5'))

    # Business rules
    # Cancelled bookings count toward revenue unless this is switched off
    REVENUE_INCLUDES_CANCELLED = _env_bool('REVENUE_INCLUDES_CANCELLED', True)
    SINGLE_POPULAR_PACKAGE = _env_bool('SINGLE_POPULAR_PACKAGE', False)
    DEFAULT_REFERRAL_VALUE = float(os.getenv('DEFAULT_REFERRAL_VALUE', '599'))

    if DEFAULT_REFERRAL_VALUE < 0:
        _logger.warning(f"DEFAULT_REFERRAL_VALUE is negative ({DEFAULT_REFERRAL_VALUE}), check your .env")


# Singleton instance
config = Config()
