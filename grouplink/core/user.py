"""
Core user (mailbox) reference.
"""

from pydantic import BaseModel, ConfigDict


class UserRef(BaseModel):
    """
    A user mailbox that has been found in the directory. Only ever created
    from a successful lookup.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    user_principal_name: str
    display_name: str | None = None

    def __str__(self) -> str:
        return self.user_principal_name
