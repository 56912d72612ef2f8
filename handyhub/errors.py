"""Domain failures raised by the HandyHub services.

Services raise these exceptions; ``main.py`` turns them into HTTP
responses. Storage errors that are not uniqueness conflicts are never
wrapped and reach the application's error handlers unchanged.
"""

from enum import Enum


class ConflictKind(str, Enum):
    """Uniqueness rules that a write can violate."""

    EMAIL_TAKEN = "email_taken"
    DUPLICATE_USER_REVIEW = "duplicate_user_review"
    DUPLICATE_WORK_REVIEW = "duplicate_work_review"
    DUPLICATE_SKILL = "duplicate_skill"
    DUPLICATE_HANDYMAN_SKILL = "duplicate_handyman_skill"
    DUPLICATE_WORK_IMAGE = "duplicate_work_image"
    PHONE_ALREADY_REGISTERED = "phone_already_registered"


CONFLICT_MESSAGES = {
    ConflictKind.EMAIL_TAKEN: "User with this email already exists",
    ConflictKind.DUPLICATE_USER_REVIEW: "You have already reviewed this user",
    ConflictKind.DUPLICATE_WORK_REVIEW: "You have already reviewed this work",
    ConflictKind.DUPLICATE_SKILL: "Skill already exists",
    ConflictKind.DUPLICATE_HANDYMAN_SKILL: "You already have this skill",
    ConflictKind.DUPLICATE_WORK_IMAGE: "This image already exists for this work",
    ConflictKind.PHONE_ALREADY_REGISTERED: "This phone number is already registered",
}


class MarketplaceError(Exception):
    """Base class for every failure reported by the services."""

    message = "Request rejected"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class AuthenticationFailed(MarketplaceError):
    """Credentials or identity token could not be accepted."""

    message = "Could not validate credentials"


class InvalidCredentials(AuthenticationFailed):
    """Unknown email or wrong password; the two are never told apart."""

    message = "Invalid email or password"


class InvalidToken(AuthenticationFailed):
    """Token is malformed, unsigned, forged or names no account."""


class TokenExpired(AuthenticationFailed):
    """Token signature is valid but its lifetime is over."""


class NotFoundOrForbidden(MarketplaceError):
    """Target resource is missing or belongs to someone else."""

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found or unauthorized")
        self.resource = resource


class ResourceNotFound(MarketplaceError):
    """A publicly readable resource does not exist."""

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class InvalidTarget(MarketplaceError):
    """Action points at the actor's own account or work."""


class Conflict(MarketplaceError):
    """A uniqueness rule rejected the write. Never retried."""

    def __init__(self, kind: ConflictKind):
        super().__init__(CONFLICT_MESSAGES[kind])
        self.kind = kind
