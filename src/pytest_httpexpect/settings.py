from typing import Annotated

import httpx
from pydantic import AfterValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def validate_base_url(v: str) -> str:
    try:
        url = httpx.URL(v)
    except httpx.InvalidURL as e:
        raise ValueError(f"base_url is not a valid URL: {str(e)}") from None
    if not url.scheme or not url.host:
        raise ValueError("base_url must be an absolute URL with scheme and host")
    return v


class Settings(BaseSettings):
    timeout: float = Field(default=5.0, gt=0, description="Default timeout in seconds for network executors.")
    follow_redirects: bool = Field(default=True, description="Whether network executors follow redirects.")
    base_url: Annotated[str, AfterValidator(validate_base_url)] = Field(
        default="http://testserver",
        description="Base URL used to resolve relative request URLs.",
    )
    user_agent: str | None = Field(default=None, description="Default User-Agent sent by network executors.")

    model_config = SettingsConfigDict(env_prefix="HTTPEXPECT_")
