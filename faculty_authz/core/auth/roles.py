"""
Canonical roles and role-name normalization.

Role names reach the API in many spellings (login forms, legacy rows,
hand-written tokens). Every comparison in the authorization core goes
through ``normalize_role`` first, so "Principal Lecturer", "prl" and "PRL"
all land on ``Role.PRL``.

Unknown spellings are returned unchanged rather than rejected: an allow-list
check further down the chain is what turns them into a denial.
"""

from enum import Enum


class Role(str, Enum):
    """The four canonical roles."""

    STUDENT = "Student"
    LECTURER = "Lecturer"
    PRL = "PRL"
    PROGRAM_LEADER = "Program Leader"

    def __str__(self) -> str:
        return self.value


# Lower-cased, trimmed spelling -> canonical role
ROLE_SYNONYMS: dict[str, Role] = {
    "student": Role.STUDENT,
    "st": Role.STUDENT,
    "lecturer": Role.LECTURER,
    "teacher": Role.LECTURER,
    "principal lecturer": Role.PRL,
    "principal": Role.PRL,
    "prl": Role.PRL,
    "program leader": Role.PROGRAM_LEADER,
    "programleader": Role.PROGRAM_LEADER,
    "program_leader": Role.PROGRAM_LEADER,
    "pl": Role.PROGRAM_LEADER,
    "leader": Role.PROGRAM_LEADER,
}

# Roles with faculty-wide authority; they bypass faculty/department scoping.
ELEVATED_ROLES: frozenset[Role] = frozenset({Role.PRL, Role.PROGRAM_LEADER})

# Seniority used for scope decisions and rate-limit tiers.
ROLE_RANK: dict[Role, int] = {
    Role.STUDENT: 0,
    Role.LECTURER: 0,
    Role.PRL: 1,
    Role.PROGRAM_LEADER: 2,
}


def normalize_role(raw: "Role | str | None") -> "Role | str | None":
    """
    Map a free-text role to its canonical value.

    - ``None`` or blank input returns ``None``.
    - Known spellings (any casing, surrounding whitespace) return a ``Role``.
    - Anything else is returned verbatim.

    The function is total and idempotent:
    ``normalize_role(normalize_role(x)) == normalize_role(x)``.
    """
    if raw is None:
        return None
    if isinstance(raw, Role):
        return raw

    key = str(raw).strip().lower()
    if not key:
        return None

    return ROLE_SYNONYMS.get(key, raw)


def is_elevated(role: "Role | str | None") -> bool:
    """True for PRL and Program Leader, whatever the input spelling."""
    return normalize_role(role) in ELEVATED_ROLES


def role_rank(role: "Role | str | None") -> int | None:
    """Seniority of a role, or None when it is not a canonical role."""
    normalized = normalize_role(role)
    if isinstance(normalized, Role):
        return ROLE_RANK[normalized]
    return None
