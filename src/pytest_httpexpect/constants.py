from enum import StrEnum


class ConfigOptions(StrEnum):
    """Configuration option names for the pytest-httpexpect plugin."""

    TIMEOUT = "httpexpect_timeout"
    BASE_URL = "httpexpect_base_url"
