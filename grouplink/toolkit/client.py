"""
An authenticated Microsoft Graph client, wraps around httpx.
"""

import threading
from datetime import datetime, timedelta, timezone

import httpx
from pydantic import BaseModel

from grouplink.config.settings import Settings


class TokenExchangeError(Exception):
    pass


class TokenData(BaseModel):
    access_token: str
    access_token_expires: datetime


class GraphAuth(httpx.Auth):
    """
    An authentication provider for httpx using the OAuth2 client credentials
    flow against the Microsoft identity platform. Tokens are cached and
    refreshed shortly before they expire; access is threadsafe.
    """

    token_data: TokenData | None = None
    token_url: str
    client_id: str
    client_secret: str
    scope: str

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        scope: str,
        *,
        token_client: httpx.Client | None = None,
    ):
        """
        Parameters
        ----------
        token_url: str
            The tenant's token endpoint, e.g.
            https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token
        client_id: str
            Application (client) ID of the app registration.
        client_secret: str
            Client secret of the app registration.
        scope: str
            The resource scope, e.g. https://graph.microsoft.com/.default
        token_client: httpx.Client | None, optional
            Client used for the token exchange. If not provided, a fresh
            client is used for each exchange.
        """
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.token_client = token_client

        self._sync_lock = threading.RLock()

    def exchange_with_identity_server(self) -> TokenData:
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scope": self.scope,
        }

        if self.token_client is not None:
            response = self.token_client.post(self.token_url, data=data)
        else:
            with httpx.Client() as client:
                response = client.post(self.token_url, data=data)

        if response.status_code != 200:
            raise TokenExchangeError(
                f"Failed to exchange token: {response.status_code} {response.text}"
            )

        content = response.json()

        self.token_data = TokenData(
            access_token=content["access_token"],
            access_token_expires=datetime.now(tz=timezone.utc)
            + timedelta(seconds=int(content.get("expires_in", 3599))),
        )

        return self.token_data

    def sync_get_token(self) -> str:
        with self._sync_lock:
            if self.token_data is None or (
                self.token_data.access_token_expires - datetime.now(tz=timezone.utc)
            ) < timedelta(minutes=5):
                self.exchange_with_identity_server()

            return self.token_data.access_token

    def sync_auth_flow(self, request):
        token = self.sync_get_token()
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


def create_client(settings: Settings) -> httpx.Client:
    """
    Create the httpx client used to talk to Graph. All requests are made
    relative to `settings.graph_url`.
    """

    auth = GraphAuth(
        token_url=settings.token_url,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        scope=settings.graph_scope,
    )

    base_url = settings.graph_url
    base_url = base_url if base_url[-1] != "/" else base_url[:-1]

    return httpx.Client(
        base_url=base_url,
        auth=auth,
        timeout=settings.request_timeout,
        headers={"Accept": "application/json"},
    )
