"""Who is performing a booking action.

Every mutating booking operation receives exactly one actor. Authorization
code matches on the actor type instead of probing user role fields.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal
from uuid import UUID

from beautybook.core.exceptions import AuthorizationError

if TYPE_CHECKING:
    from beautybook.models.user import User


@dataclass(frozen=True)
class CustomerActor:
    id: UUID


@dataclass(frozen=True)
class ArtistActor:
    id: UUID


@dataclass(frozen=True)
class AdminActor:
    id: UUID


Actor = CustomerActor | ArtistActor | AdminActor

ActorRole = Literal["customer", "artist", "admin"]


def actor_role(actor: Actor) -> ActorRole:
    match actor:
        case CustomerActor():
            return "customer"
        case ArtistActor():
            return "artist"
        case AdminActor():
            return "admin"


def actor_from_user(user: "User", as_role: ActorRole | None = None) -> Actor:
    """Build the actor for an authenticated user.

    Users may hold several roles. An explicit ``as_role`` must be one of
    them; otherwise admin wins, then artist, then customer.

    Raises:
        AuthorizationError: If the user does not hold the requested role
    """
    roles = set(user.roles or [])

    if as_role is not None:
        if as_role not in roles:
            raise AuthorizationError(f"User does not have the '{as_role}' role")
        role = as_role
    elif "admin" in roles:
        role = "admin"
    elif "artist" in roles:
        role = "artist"
    elif "customer" in roles:
        role = "customer"
    else:
        raise AuthorizationError("User has no booking role")

    match role:
        case "admin":
            return AdminActor(user.id)
        case "artist":
            return ArtistActor(user.id)
        case _:
            return CustomerActor(user.id)
