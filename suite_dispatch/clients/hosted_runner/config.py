"""Configuration for the hosted image runner client."""

from pydantic import BaseModel, Field, SecretStr


class HostedRunnerConfig(BaseModel):
    """Configuration for the hosted image runner client.

    Requests authenticate with basic auth: the account username and its
    access key.
    """

    username: str
    access_key: SecretStr
    api_base_url: str = "https://api.us-west-1.saucelabs.com"
    request_timeout: float = Field(default=120, gt=0)
