"""
The mock directory, used for testing and for the demo command.
"""

from pydantic import BaseModel, Field
from structlog.typing import FilteringBoundLogger

from grouplink.core.group import GroupRef
from grouplink.core.membership import LinkType
from grouplink.core.user import UserRef
from grouplink.service.directory import DirectoryService, LinkFailure, SessionRequired


class MockGroup(BaseModel):
    ref: GroupRef
    mail_nickname: str
    members: set[str] = Field(default_factory=set)
    owners: set[str] = Field(default_factory=set)

    def links(self, link: LinkType) -> set[str]:
        return self.members if link == LinkType.MEMBER else self.owners


class MockDirectory(DirectoryService):
    """
    An in-memory directory. Every call to `add_link` is recorded in `calls`,
    in order, as `(link, group_id, user_id)`.
    """

    name = "mock"

    groups: dict[str, MockGroup]
    users: dict[str, UserRef]
    calls: list[tuple[LinkType, str, str]]

    def __init__(self):
        self.groups = {}
        self.users = {}
        self.calls = []
        self.connected = True
        self.failing_users: set[str] = set()

    def add_group(
        self, group_id: str, display_name: str, mail: str | None = None
    ) -> GroupRef:
        ref = GroupRef(group_id=group_id, display_name=display_name, mail=mail)
        nickname = (mail or display_name).split("@")[0]
        self.groups[group_id] = MockGroup(ref=ref, mail_nickname=nickname)
        return ref

    def add_user(
        self, user_id: str, user_principal_name: str, display_name: str | None = None
    ) -> UserRef:
        ref = UserRef(
            user_id=user_id,
            user_principal_name=user_principal_name,
            display_name=display_name,
        )
        self.users[user_id] = ref
        return ref

    def check_session(self, log: FilteringBoundLogger) -> None:
        if not self.connected:
            log.warning("mock.session_unavailable")
            raise SessionRequired("Mock directory is disconnected")

    def find_groups(self, identifier: str, log: FilteringBoundLogger) -> list[GroupRef]:
        self.check_session(log=log)

        needle = identifier.strip().lower()

        return [
            group.ref
            for group in self.groups.values()
            if needle
            in {
                (group.ref.mail or "").lower(),
                group.ref.display_name.lower(),
                group.mail_nickname.lower(),
            }
        ]

    def find_users(self, identifier: str, log: FilteringBoundLogger) -> list[UserRef]:
        self.check_session(log=log)

        needle = identifier.strip().lower()

        return [
            user
            for user in self.users.values()
            if needle
            in {user.user_principal_name.lower(), (user.display_name or "").lower()}
        ]

    def add_link(
        self,
        group: GroupRef,
        user: UserRef,
        link: LinkType,
        log: FilteringBoundLogger,
    ) -> bool:
        self.check_session(log=log)
        self.calls.append((link, group.group_id, user.user_id))

        if user.user_id in self.failing_users:
            raise LinkFailure(f"Mock refused to add {user} to {group} ({link.value})")

        if group.group_id not in self.groups:
            raise LinkFailure(f"Group {group.group_id} does not exist")

        holders = self.groups[group.group_id].links(link)

        if user.user_id in holders:
            return False

        holders.add(user.user_id)

        return True


def example_directory() -> MockDirectory:
    """
    A small seeded directory for trying out the workflow without a tenant.
    """

    directory = MockDirectory()

    directory.add_group("group-sales", "Sales", "sales@example.com")
    directory.add_group("group-eng-1", "Engineering", "engineering@example.com")
    directory.add_group("group-eng-2", "Engineering", "engineering-emea@example.com")

    directory.add_user("user-alice", "alice@example.com", "Alice Adams")
    directory.add_user("user-bob", "bob@example.com", "Bob Brown")
    directory.add_user("user-carol", "carol@example.com", "Carol Clark")

    return directory
