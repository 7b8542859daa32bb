"""
Profile visibility rules.

Everything here is a pure projection over ProfileResponse models: nothing is
read from or written to the database, nothing is logged, and the input model
is never mutated. Callers decide how to log or render denials.
"""

from collections.abc import Iterable
from uuid import UUID

from app.core.exceptions import (
    ProfileAccessDeniedError,
    ProfileNotFoundError,
)
from app.models.profile import Profile
from app.schemas.profile import ProfileResponse


def apply_privacy(
    profile: ProfileResponse,
    viewer_id: UUID,
    *,
    has_accepted_interest: bool = False,
) -> ProfileResponse:
    """
    Return the view of `profile` that `viewer_id` is allowed to see.

    - The owner gets the profile back unmodified.
    - A blocked viewer gets ProfileAccessDeniedError, before any other rule.
    - A hidden profile raises ProfileNotFoundError unless the viewer holds an
      accepted interest with the owner.
    - Otherwise each disabled show_* flag strips its field independently.
    """
    if profile.user_id == viewer_id:
        return profile

    if str(viewer_id) in profile.blocked_users:
        raise ProfileAccessDeniedError()

    if profile.privacy.is_hidden and not has_accepted_interest:
        raise ProfileNotFoundError()

    privacy = profile.privacy
    update: dict = {"blocked_users": []}

    if not privacy.show_photos:
        update["photos"] = []

    if not privacy.show_contact and profile.user is not None:
        update["user"] = profile.user.model_copy(update={"phone": None, "email": None})

    if not privacy.show_income:
        update["income"] = None

    if not privacy.show_location:
        # City, state and country stay visible
        update["location"] = profile.location.model_copy(update={"address": None})

    return profile.model_copy(update=update)


def filter_visible(
    profiles: Iterable[ProfileResponse],
    viewer_id: UUID,
    accepted_user_ids: set[UUID] | None = None,
) -> list[ProfileResponse]:
    """Discovery variant: drop what the viewer may not see, redact the rest."""
    accepted_user_ids = accepted_user_ids or set()
    visible = []
    for profile in profiles:
        try:
            visible.append(
                apply_privacy(
                    profile,
                    viewer_id,
                    has_accepted_interest=profile.user_id in accepted_user_ids,
                )
            )
        except ProfileNotFoundError:
            continue
    return visible


def is_blocked_between(
    profile_a: Profile | None,
    user_a_id: UUID,
    profile_b: Profile | None,
    user_b_id: UUID,
) -> bool:
    """True if either owner has blocked the other."""
    if profile_a is not None and profile_a.has_blocked(user_b_id):
        return True
    if profile_b is not None and profile_b.has_blocked(user_a_id):
        return True
    return False
