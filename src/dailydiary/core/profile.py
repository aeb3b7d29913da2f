"""User profile model - auxiliary fields not held by the identity provider."""

from dataclasses import dataclass
from datetime import date


@dataclass
class UserProfile:
    """Profile document stored alongside the account."""

    name: str = ""
    date_of_birth: str = ""
    place: str = ""
    updated_at: str = ""

    @classmethod
    def from_document(cls, data: dict | None) -> "UserProfile":
        """Create UserProfile from a store document (None = empty profile)."""
        if not data:
            return cls()
        return cls(
            name=data.get("name", "") or "",
            date_of_birth=data.get("dateOfBirth", "") or "",
            place=data.get("place", "") or "",
            updated_at=str(data.get("updatedAt", "") or ""),
        )

    def to_document(self) -> dict:
        """Editable fields in store document form."""
        return {
            "name": self.name,
            "dateOfBirth": self.date_of_birth,
            "place": self.place,
        }

    def age(self, as_of: date | None = None) -> int | None:
        """Age in whole years, or None without a valid birth date."""
        if not self.date_of_birth:
            return None
        try:
            born = date.fromisoformat(self.date_of_birth)
        except ValueError:
            return None
        as_of = as_of or date.today()
        years = as_of.year - born.year
        if (as_of.month, as_of.day) < (born.month, born.day):
            years -= 1
        return years
