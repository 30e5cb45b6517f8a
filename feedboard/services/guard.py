"""Authorization policy for every operation.

Checks run inside the operation handlers, because ownership can only be
decided after the post has been loaded. Authentication is checked first
and short-circuits the ownership check.
"""

from enum import StrEnum
from typing import Any

from feedboard.errors import ForbiddenError, UnauthenticatedError
from feedboard.services.context import SessionContext


class Operation(StrEnum):
    """Operations exposed by the API."""

    REGISTER = "register"
    LOGIN = "login"
    CREATE_POST = "create_post"
    LIST_POSTS = "list_posts"
    READ_POST = "read_post"
    UPDATE_POST = "update_post"
    DELETE_POST = "delete_post"
    READ_STATUS = "read_status"
    UPDATE_STATUS = "update_status"


class Requirement(StrEnum):
    NONE = "none"
    AUTHENTICATED = "authenticated"
    OWNER = "owner"


POLICIES: dict[Operation, Requirement] = {
    Operation.REGISTER: Requirement.NONE,
    Operation.LOGIN: Requirement.NONE,
    Operation.CREATE_POST: Requirement.AUTHENTICATED,
    Operation.LIST_POSTS: Requirement.AUTHENTICATED,
    Operation.READ_POST: Requirement.AUTHENTICATED,
    Operation.UPDATE_POST: Requirement.OWNER,
    Operation.DELETE_POST: Requirement.OWNER,
    Operation.READ_STATUS: Requirement.AUTHENTICATED,
    Operation.UPDATE_STATUS: Requirement.AUTHENTICATED,
}


def require_authenticated(ctx: SessionContext) -> None:
    """First half of an owner check, run before the resource is loaded."""
    if not ctx.is_authenticated:
        raise UnauthenticatedError()


def authorize(operation: Operation, ctx: SessionContext, owner_id: Any = None) -> None:
    """Raise if ``ctx`` may not perform ``operation``.

    For owner-guarded operations ``owner_id`` is the loaded resource's owner;
    it is compared to the requester as an exact string.

    Raises:
        UnauthenticatedError: an identity is required and there is none.
        ForbiddenError: the identity does not own the resource.
    """
    requirement = POLICIES[operation]
    if requirement is Requirement.NONE:
        return
    require_authenticated(ctx)
    if requirement is Requirement.OWNER and (owner_id is None or str(owner_id) != ctx.user_id):
        raise ForbiddenError()
