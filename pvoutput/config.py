"""
Client configuration loaded from environment variables.

Uses Pydantic BaseSettings for env var loading and validation. Variables
are prefixed with ``PVOUTPUT_`` (``PVOUTPUT_API_KEY``,
``PVOUTPUT_SYSTEM_ID``, ...) and may also come from a ``.env`` file.

CHANGELOG:
- 2026-10-12: Add donating flag
- 2026-10-10: Initial creation

TODO:
- None
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://pvoutput.org/service/r2"


class PVOutputSettings(BaseSettings):
    """Credentials and endpoint for the PVOutput API.

    Attributes:
        api_key: Read/write API key of the account.
        system_id: Numeric id of the system the key acts on.
        base_url: Service root (must be HTTPS).
        donating: Whether the account is donating, which raises the batch
            size limit from 30 to 100.
    """

    model_config = SettingsConfigDict(
        env_prefix="PVOUTPUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str
    system_id: str
    base_url: str = DEFAULT_BASE_URL
    donating: bool = False

    @field_validator("system_id")
    @classmethod
    def system_id_must_be_numeric(cls, v: str) -> str:
        """Validate that the system id is a positive decimal number."""
        if not v.isdigit():
            raise ValueError("PVOUTPUT_SYSTEM_ID must be numeric")
        return v

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_https(cls, v: str) -> str:
        """Validate that the base URL uses HTTPS; the API key is sent in a header."""
        if not v.lower().startswith("https://"):
            raise ValueError(f"PVOUTPUT_BASE_URL must use HTTPS (got: '{v[:20]}...')")
        return v.rstrip("/")
