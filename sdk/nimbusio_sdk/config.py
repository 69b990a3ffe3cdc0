"""
Configuration for the nimbus.io SDK.

All settings come from environment variables prefixed with ``NIMBUS_IO_``
(for example ``NIMBUS_IO_SERVICE_DOMAIN``). Defaults point at the public
service.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class ServiceSettings(BaseSettings):
    """nimbus.io service configuration."""

    # Collections are served from "<collection>.<service_domain>"
    service_domain: str = Field(default="nimbus.io")
    service_port: int = Field(default=443)
    use_ssl: bool = Field(default=True)

    # Sent as the "agent" header on every request
    agent: str = Field(default="pynimbusio/1.0")

    timeout: float = Field(default=30.0, description="Transport timeout in seconds")

    credentials_path: str = Field(
        default="~/.nimbus.io",
        validation_alias="NIMBUS_IO_CREDENTIALS",
    )

    model_config = {"env_prefix": "NIMBUS_IO_", "populate_by_name": True}


@lru_cache(maxsize=1)
def get_settings() -> ServiceSettings:
    return ServiceSettings()
