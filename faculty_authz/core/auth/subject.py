"""
Authenticated subject.

A Subject is rebuilt on every request from the verified token claims merged
with a fresh read of the user row. It is never persisted.
"""

from dataclasses import dataclass

from .roles import Role, is_elevated, normalize_role


ACTIVE_STATUS = "Active"


@dataclass(frozen=True)
class Subject:
    """The caller behind a verified bearer credential."""

    id: int
    role: Role | str | None
    username: str | None = None
    email: str | None = None
    faculty_name: str | None = None
    department: str | None = None
    status: str = ACTIVE_STATUS

    @property
    def canonical_role(self) -> Role | str | None:
        return normalize_role(self.role)

    @property
    def is_elevated(self) -> bool:
        """PRL and Program Leader hold faculty-wide authority."""
        return is_elevated(self.role)

    def has_role(self, *roles: Role) -> bool:
        return self.canonical_role in roles

    def to_log_dict(self) -> dict[str, object]:
        return {
            "subject_id": self.id,
            "role": str(self.canonical_role) if self.canonical_role else None,
            "faculty_name": self.faculty_name,
        }
