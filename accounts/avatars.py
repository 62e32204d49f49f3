from __future__ import annotations

import hashlib

from django.conf import settings


def avatar_url(user, size: int = 48) -> str:
    """Return the avatar URL for a user, falling back to a DiceBear image.

    The fallback seed is derived from user.pk and a salt; it does not
    expose e-mail or username.
    """
    profile = getattr(user, "profile", None)
    if profile is not None and profile.avatar_url:
        return profile.avatar_url
    role = getattr(profile, "role", "student")
    seed_src = f"{getattr(user, 'pk', '0')}:{settings.AVATAR_SEED_SALT}:{role}"
    seed = hashlib.sha256(seed_src.encode()).hexdigest()[:16]
    return f"{settings.AVATAR_BASE_URL}/{settings.AVATAR_STYLE}/svg?seed={seed}&size={size}"
