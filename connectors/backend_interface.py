from typing import Protocol, Any, List
from xml.etree.ElementTree import Element

from box import Box


class ContentType(Box):
    """
    A content (document) type reported back by the backend after an import.
    Dot-access dict, e.g. ``content_type.alias`` or ``content_type["name"]``.
    """


class BackendUser(Box):
    """
    A backend user account as returned by the user service.
    Expected keys: id, username (login name), name (display name).
    """


class PasswordResetResult(Box):
    """
    Outcome of a password reset.
    Keys: succeeded (bool), errors (list of str).
    """


class UserCreateResult(Box):
    """
    Outcome of creating a user.
    Keys: succeeded (bool), errors (list of str), user (BackendUser or None).
    """


class UserGroup(Box):
    """A backend user group. Expected keys: alias, name."""


class PasswordChangeNotSupported(Exception):
    """The backend's membership provider refuses manual password changes."""


class SettingsProvider(Protocol):
    """Interface Protocol for the settings collaborator."""

    def try_get_chauffeur_directory(self) -> str | None:
        """
        Return the configured package directory, or None when it cannot be used.
        The implementation is responsible for reporting why.
        """
        ...


class PackagingService(Protocol):
    """
    Protocol for the backend packaging capabilities used by the package importer.
    Every call either completes or raises; callers never retry.
    """

    def import_data_type_definitions(self, fragment: Element) -> None:
        """Import a ``<DataTypes>`` element holding one or more ``<DataType>`` entries."""
        ...

    def import_templates(self, fragment: Element) -> None: ...
    def import_macros(self, fragment: Element) -> None: ...

    def import_content_types(self, fragment: Element) -> List[ContentType]:
        """
        Import a ``<DocumentTypes>`` collection or a single ``<DocumentType>`` element.
        Returns the content types created or updated.
        """
        ...


class UserService(Protocol):
    """Protocol for backend user-account operations."""

    def create(self, username: str, email: str, name: str) -> UserCreateResult:
        """Create an unapproved user without a password or groups."""
        ...

    def get_by_username(self, username: str) -> BackendUser | None: ...
    def save(self, user: BackendUser) -> None: ...
    def get_user_groups_by_alias(self, aliases: List[str]) -> List[UserGroup]:
        """The known groups among ``aliases``; unknown aliases are skipped."""
        ...

    def reset_password(self, user_id: Any, new_password: str) -> PasswordResetResult:
        """
        Replace the password of a user.
        Raises PasswordChangeNotSupported when the backend does not allow it.
        """
        ...
