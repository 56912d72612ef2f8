"""Ownership checks for mutating actions.

Only the recorded owner of a resource may change or delete it. A missing
resource and a resource owned by someone else produce the very same
``NotFoundOrForbidden`` error, so callers cannot probe which ids exist.
"""

from typing import TypeVar

from sqlalchemy.orm import Session

from .errors import InvalidTarget, NotFoundOrForbidden

T = TypeVar("T")


def authorize(actor_id: int, resource: T | None, resource_name: str) -> T:
    """
    Allow the action only when ``actor_id`` owns ``resource``.

    Args:
        actor_id (int): Identifier of the authenticated account.
        resource: Loaded resource exposing ``owner_id``, or ``None``.
        resource_name (str): Name used in the error message.

    Raises:
        NotFoundOrForbidden: Resource is absent or owned by another account.

    Returns:
        The resource itself.
    """
    if resource is None or resource.owner_id != actor_id:
        raise NotFoundOrForbidden(resource_name)
    return resource


def load_owned(db: Session, model: type[T], resource_id: int, actor_id: int, resource_name: str) -> T:
    """Load ``model`` by primary key and authorize ``actor_id`` on it."""
    return authorize(actor_id, db.get(model, resource_id), resource_name)


def ensure_not_self(actor_id: int, target_owner_id: int, reason: str) -> None:
    """Reject actions whose target belongs to the actor."""
    if actor_id == target_owner_id:
        raise InvalidTarget(reason)
