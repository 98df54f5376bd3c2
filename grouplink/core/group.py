"""
Core group reference.
"""

from pydantic import BaseModel, ConfigDict


class GroupRef(BaseModel):
    """
    A group that has been found in the directory. Only ever created from a
    successful lookup.
    """

    model_config = ConfigDict(frozen=True)

    group_id: str
    display_name: str
    mail: str | None = None

    def __str__(self) -> str:
        return self.mail or self.display_name
