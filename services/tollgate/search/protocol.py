"""
User search protocol and types.

Defines the SearchStrategy Protocol that every user-directory backend must
satisfy, along with the plain record type strategies return.
"""

from dataclasses import asdict, dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class UserRecord:
    """A user as returned by a search. Never a lazy cursor or ORM object."""

    id: int | str
    username: str
    email: str
    provider: str = "local"
    confirmed: bool = False
    blocked: bool = False
    role_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "UserRecord":
        return cls(
            id=doc["id"],
            username=doc.get("username", ""),
            email=doc.get("email", ""),
            provider=doc.get("provider", "local"),
            confirmed=bool(doc.get("confirmed", False)),
            blocked=bool(doc.get("blocked", False)),
            role_id=doc.get("role_id"),
        )


@runtime_checkable
class SearchStrategy(Protocol):
    """Protocol defining a backend-native fuzzy user search.

    Implementations build their own filter expression but must honour the
    same contract: `term` is matched as a substring of username OR email.
    """

    async def search(self, term: str) -> list[UserRecord]:
        """Return matching users ordered by id."""
        ...
