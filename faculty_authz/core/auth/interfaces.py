"""
Authorization interfaces - Core abstractions.

Per-record decisions go through the OwnershipResolver; collection queries
go through a ScopeProvider, which turns a subject into a DataScope and
applies it to a SQLAlchemy query.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


# ============================================================
# DATA SCOPE
# ============================================================

@dataclass
class DataScope:
    """
    Represents boundaries of what rows a subject can list.

    Filter values:
        scalar            -> column == value
        list/tuple/set    -> column IN (...)
        SQLAlchemy Select -> column IN (subquery)

    Examples:
        DataScope.ownership(7, field_name="lecturer_id")
        DataScope.faculty("ICT")
        DataScope.nothing()
    """
    level: str  # "global", "ownership", "faculty", "enrollment", "self", "none"
    filters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def global_access(cls) -> "DataScope":
        """No data restrictions."""
        return cls(level="global", filters={})

    @classmethod
    def ownership(cls, owner_id: Any, field_name: str = "created_by") -> "DataScope":
        """Restrict to owned records."""
        return cls(level="ownership", filters={field_name: owner_id})

    @classmethod
    def faculty(cls, faculty_name: str, field_name: str = "faculty_name") -> "DataScope":
        """Restrict to one faculty."""
        return cls(level="faculty", filters={field_name: faculty_name})

    @classmethod
    def nothing(cls) -> "DataScope":
        """Matches no rows."""
        return cls(level="none", filters={})


# ============================================================
# SCOPE PROVIDER
# ============================================================

class ScopeProvider(ABC):
    """
    Abstract scope provider interface.

    Determines what rows a subject can list and applies the matching
    filters to queries.

    Implementations:
    - FacultyScopeProvider: role + faculty + enrollment based (default)
    """

    @abstractmethod
    def get_scope(
        self,
        subject: Any,
        resource_type: str,
    ) -> DataScope:
        """
        Get the data access scope for a subject.

        Args:
            subject: The authenticated caller
            resource_type: Table being listed ("courses", "classes", "users")

        Returns:
            DataScope defining what rows the subject can list
        """
        pass

    @abstractmethod
    def apply_to_query(
        self,
        query: Any,
        scope: DataScope,
        model: type,
    ) -> Any:
        """
        Apply scope filters to a SQLAlchemy query.

        Args:
            query: SQLAlchemy Select statement
            scope: DataScope to apply
            model: SQLAlchemy model class (to get column references)

        Returns:
            Modified query with scope filters applied
        """
        pass

    def scoped(self, subject: Any, query: Any, model: type) -> Any:
        """Convenience: compute the scope for ``model`` and apply it."""
        resource_type = getattr(model, "__tablename__", model.__name__.lower())
        scope = self.get_scope(subject, resource_type)
        return self.apply_to_query(query, scope, model)
