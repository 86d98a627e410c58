"""
DevJournal Backend — Ownership & Visibility Gate
==================================================

What:  The one authorization policy shared by entries, snippets and
       entry-scoped tag mutations.
How:   Pure functions over any object exposing `user_id` and `is_public`,
       plus the optional caller (None = anonymous).

READ:
    public                      → allowed for everyone, including anonymous
    private + caller is owner   → allowed
    anything else               → NotFoundError (same response as a missing id)

WRITE (update, delete, attach snippets/tags):
    resource missing            → NotFoundError
    anonymous caller            → AuthenticationError
    caller is not owner         → AuthorizationError
    (the existence check always runs before the ownership check)
"""

from typing import Optional, Protocol, TypeVar

from devjournal.exceptions import AuthenticationError, AuthorizationError, NotFoundError


class OwnedResource(Protocol):
    user_id: str
    is_public: bool


class Caller(Protocol):
    id: str


R = TypeVar("R", bound=OwnedResource)


def is_owner(resource: OwnedResource, caller: Optional[Caller]) -> bool:
    return caller is not None and caller.id == resource.user_id


def can_read(resource: OwnedResource, caller: Optional[Caller]) -> bool:
    return bool(resource.is_public) or is_owner(resource, caller)


def ensure_readable(
    resource: Optional[R],
    caller: Optional[Caller],
    resource_name: str,
    resource_id: str,
) -> R:
    """Return the resource if the caller may see it, else raise NotFoundError."""
    if resource is None or not can_read(resource, caller):
        raise NotFoundError(resource=resource_name, resource_id=resource_id)
    return resource


def ensure_writable(
    resource: Optional[R],
    caller: Optional[Caller],
    resource_name: str,
    resource_id: str,
    message: Optional[str] = None,
) -> R:
    """Return the resource if the caller owns it; 404, 401 or 403 otherwise."""
    if resource is None:
        raise NotFoundError(resource=resource_name, resource_id=resource_id)
    if caller is None:
        raise AuthenticationError("Authentication required")
    if not is_owner(resource, caller):
        raise AuthorizationError(
            message or f"You do not have permission to modify this {resource_name}",
            context={"resource": resource_name, "resource_id": resource_id},
        )
    return resource


def ensure_can_link_entry(entry: Optional[R], caller: Caller, entry_id: str) -> R:
    """
    A snippet may only point at an entry that exists and that the caller owns.
    Owning the snippet alone is not enough.
    """
    if entry is None:
        raise NotFoundError(resource="entry", resource_id=entry_id, message="Entry not found")
    if not is_owner(entry, caller):
        raise AuthorizationError(
            "You can only add snippets to your own entries",
            context={"resource": "entry", "resource_id": entry_id},
        )
    return entry
