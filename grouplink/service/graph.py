"""
Directory service backed by Microsoft Graph.

Groups and mailboxes are looked up with OData filters, and links are granted
by adding directory object references to the group's `members` or `owners`
collection. Graph answers a duplicate reference with a 400 whose message says
the reference "already exist(s)"; that is reported as "not newly added"
rather than as an error.
"""

import urllib.parse
from json import JSONDecodeError
from typing import Any

import httpx
from structlog.typing import FilteringBoundLogger

from grouplink.core.group import GroupRef
from grouplink.core.membership import LinkType
from grouplink.core.user import UserRef
from grouplink.service.directory import (
    DirectoryService,
    LinkFailure,
    LookupFailure,
    SessionRequired,
)
from grouplink.toolkit.client import TokenExchangeError

GROUP_FIELDS = "id,displayName,mail"
USER_FIELDS = "id,displayName,userPrincipalName,mail"


def odata_quote(value: str) -> str:
    """
    Quote a string literal for an OData $filter expression.
    """
    return "'" + value.replace("'", "''") + "'"


def error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (JSONDecodeError, KeyError, TypeError):
        return response.text


def group_from_graph(content: dict[str, Any]) -> GroupRef:
    return GroupRef(
        group_id=content["id"],
        display_name=content.get("displayName") or content.get("mail") or "",
        mail=content.get("mail"),
    )


def user_from_graph(content: dict[str, Any]) -> UserRef:
    return UserRef(
        user_id=content["id"],
        user_principal_name=content.get("userPrincipalName")
        or content.get("mail")
        or content["id"],
        display_name=content.get("displayName"),
    )


class GraphDirectory(DirectoryService):
    """
    Directory service for a Microsoft 365 tenant. Expects an httpx client
    whose base URL is the Graph endpoint (including the version) and that
    authenticates its own requests, see `grouplink.toolkit.client`.
    """

    name = "graph"

    client: httpx.Client

    def __init__(self, client: httpx.Client):
        self.client = client

    def request(
        self, method: str, url: str, log: FilteringBoundLogger, **kwargs
    ) -> httpx.Response:
        """
        Make a request, translating transport and authentication failures
        into `SessionRequired`.
        """

        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            log.warning("graph.transport_error", url=url, error=str(e))
            raise SessionRequired(f"Could not reach the directory: {e}") from e
        except TokenExchangeError as e:
            log.warning("graph.token_exchange_failed", error=str(e))
            raise SessionRequired(str(e)) from e

        if response.status_code == 401:
            log.warning("graph.unauthorized", url=url)
            raise SessionRequired(
                f"The directory rejected our credentials: {error_message(response)}"
            )

        return response

    def list_values(
        self, url: str, params: dict[str, str], log: FilteringBoundLogger
    ) -> list[dict[str, Any]]:
        """
        All values of a collection query, following `@odata.nextLink` until
        the last page.
        """

        values = []

        while url:
            response = self.request("GET", url, log=log, params=params)

            if response.status_code == 400:
                # Malformed filters (e.g. odd characters in the identifier)
                # cannot match anything.
                log.info("graph.bad_filter", url=url, message=error_message(response))
                return []

            if response.status_code != 200:
                log.info("graph.lookup_failed", url=url, status=response.status_code)
                raise LookupFailure(
                    f"Error querying {url}: {response.status_code} "
                    f"{error_message(response)}"
                )

            content = response.json()
            values.extend(content.get("value", []))

            # The next link already carries the query.
            url = content.get("@odata.nextLink")
            params = None

        return values

    def check_session(self, log: FilteringBoundLogger) -> None:
        response = self.request(
            "GET", "/organization", log=log, params={"$select": "id"}
        )

        if response.status_code != 200:
            log.warning("graph.session_check_failed", status=response.status_code)
            raise SessionRequired(
                f"Session check failed: {response.status_code} {error_message(response)}"
            )

        log.debug("graph.session_ok")

    def find_groups(self, identifier: str, log: FilteringBoundLogger) -> list[GroupRef]:
        literal = odata_quote(identifier.strip())

        values = self.list_values(
            "/groups",
            params={
                "$filter": (
                    f"mail eq {literal} or displayName eq {literal} "
                    f"or mailNickname eq {literal}"
                ),
                "$select": GROUP_FIELDS,
            },
            log=log,
        )

        log.debug("graph.groups_found", number_of_groups=len(values))

        return [group_from_graph(value) for value in values]

    def find_users(self, identifier: str, log: FilteringBoundLogger) -> list[UserRef]:
        identifier = identifier.strip()

        if "@" in identifier:
            response = self.request(
                "GET",
                f"/users/{urllib.parse.quote(identifier, safe='@')}",
                log=log,
                params={"$select": USER_FIELDS},
            )

            if response.status_code == 200:
                return [user_from_graph(response.json())]

            if response.status_code not in [400, 404]:
                log.info("graph.lookup_failed", status=response.status_code)
                raise LookupFailure(
                    f"Error reading user {identifier}: {response.status_code} "
                    f"{error_message(response)}"
                )

            # Primary SMTP address can differ from the UPN.
            literal = odata_quote(identifier)
            filter_query = f"mail eq {literal}"
        else:
            literal = odata_quote(identifier)
            filter_query = f"displayName eq {literal} or mailNickname eq {literal}"

        values = self.list_values(
            "/users",
            params={"$filter": filter_query, "$select": USER_FIELDS},
            log=log,
        )

        log.debug("graph.users_found", number_of_users=len(values))

        return [user_from_graph(value) for value in values]

    def add_link(
        self,
        group: GroupRef,
        user: UserRef,
        link: LinkType,
        log: FilteringBoundLogger,
    ) -> bool:
        log = log.bind(group_id=group.group_id, user_id=user.user_id, link=link.value)

        base_url = str(self.client.base_url).rstrip("/")

        response = self.request(
            "POST",
            f"/groups/{group.group_id}/{link.value}/$ref",
            log=log,
            json={"@odata.id": f"{base_url}/directoryObjects/{user.user_id}"},
        )

        if response.status_code in [200, 204]:
            log.debug("graph.link_added")
            return True

        message = error_message(response)

        if response.status_code == 400 and "already exist" in message:
            log.debug("graph.link_already_present")
            return False

        log.info("graph.link_failed", status=response.status_code, message=message)

        raise LinkFailure(
            f"Could not add {user} to {group} as {link.value}: "
            f"{response.status_code} {message}"
        )
