"""Client settings loaded from the environment."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_TIMEOUT = 30.0


class Settings(BaseModel):
    """Where the service lives and how to authenticate against it."""

    api_url: str = Field(..., description="Base URL of the out-message service")
    api_key: str = Field(..., description="Bearer key sent with every request")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Seconds")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from ``OUT_MESSAGE_*`` variables, reading ``.env`` first.

        Raises:
            ValueError: if a required variable is not set.
        """
        load_dotenv(dotenv_path)

        api_url = os.getenv("OUT_MESSAGE_API_URL")
        api_key = os.getenv("OUT_MESSAGE_API_KEY")
        missing = [
            name
            for name, value in (
                ("OUT_MESSAGE_API_URL", api_url),
                ("OUT_MESSAGE_API_KEY", api_key),
            )
            if not value
        ]
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        return cls(
            api_url=api_url,
            api_key=api_key,
            timeout=float(os.getenv("OUT_MESSAGE_TIMEOUT", str(DEFAULT_TIMEOUT))),
        )
