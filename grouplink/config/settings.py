"""
Main settings object.
"""

from datetime import timedelta
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    directory_type: Literal["graph", "mock"] = "graph"

    # App registration used for the client credentials flow. The app needs
    # the GroupMember.ReadWrite.All and User.Read.All application permissions.
    tenant_id: str | None = None
    client_id: str | None = None
    client_secret: str | None = None

    graph_url: str = "https://graph.microsoft.com/v1.0"
    authority_url: str = "https://login.microsoftonline.com"
    request_timeout: float = 30.0

    connect_attempts: int = 3
    connect_retry_delay: timedelta = timedelta(seconds=5)

    manual_sentinel: str = "done"
    bulk_failure_policy: Literal["restart", "keep_partial", "ask"] = "restart"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="GROUPLINK_", env_file=".env")

    @property
    def has_credentials(self) -> bool:
        return all([self.tenant_id, self.client_id, self.client_secret])

    @property
    def token_url(self) -> str:
        return f"{self.authority_url.rstrip('/')}/{self.tenant_id}/oauth2/v2.0/token"

    @property
    def graph_scope(self) -> str:
        # https://graph.microsoft.com/v1.0 -> https://graph.microsoft.com/.default
        scheme, _, rest = self.graph_url.partition("://")
        host = rest.split("/")[0]
        return f"{scheme}://{host}/.default"
