"""Per-user enrollment and favorites state, persisted client-side.

The profile `{"enrollments": [...], "favoritesCourseIds": [...]}` is stored
as JSON under `userProfile_<userId>`. `login()` loads the profile of the
user it is given and `logout()` drops it, so one user's cached state never
shows up in another user's session.

Two ways to unenroll exist: `unenroll_from_course` only edits the local
profile, while `remove_enrollment` deletes the enrollment on the server
first and then updates the local profile.
"""
from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from .api import AcademyApi
from .storage import Storage

logger = logging.getLogger(__name__)


def _empty_profile() -> dict[str, list]:
    return {"enrollments": [], "favoritesCourseIds": []}


class UserStateStore:
    def __init__(self, api: AcademyApi, storage: Storage):
        self.api = api
        self.storage = storage
        self.user: dict[str, Any] | None = None
        self.profile = _empty_profile()

    @property
    def storage_key(self) -> str | None:
        if not self.user or self.user.get("id") is None:
            return None
        return f"userProfile_{self.user['id']}"

    def login(self, user: dict[str, Any]) -> None:
        self.user = user
        self.profile = _empty_profile()
        key = self.storage_key
        raw = self.storage.get_item(key) if key else None
        if not raw:
            return
        try:
            stored = json.loads(raw)
        except ValueError:
            logger.error("Failed to parse stored user profile under %s", key)
            return
        if isinstance(stored, dict):
            self.profile["enrollments"] = list(stored.get("enrollments") or [])
            self.profile["favoritesCourseIds"] = list(stored.get("favoritesCourseIds") or [])

    def logout(self) -> None:
        self.user = None
        self.profile = _empty_profile()

    def _save(self) -> None:
        key = self.storage_key
        if key:
            self.storage.set_item(key, json.dumps(self.profile))

    def is_course_favorited(self, course_id) -> bool:
        return course_id in self.profile["favoritesCourseIds"]

    def is_course_enrolled(self, course_id) -> bool:
        return any(e["courseId"] == course_id for e in self.profile["enrollments"])

    def toggle_favorite(self, course: dict[str, Any]) -> None:
        favorites = self.profile["favoritesCourseIds"]
        if course["id"] in favorites:
            self.profile["favoritesCourseIds"] = [cid for cid in favorites if cid != course["id"]]
        else:
            self.profile["favoritesCourseIds"] = favorites + [course["id"]]
        self._save()

    async def enroll_in_course(self, course: dict[str, Any]) -> None:
        """Enroll on the server, then record the enrollment locally.

        Already enrolled locally: nothing happens. A failed server call is
        re-raised and leaves the local profile untouched.
        """
        if self.is_course_enrolled(course["id"]):
            return
        user_id = self.user.get("id") if self.user else None
        try:
            result = await self.api.enrollments.create(course.get("id"), user_id)
        except Exception:
            logger.error("Failed to enroll in course %s", course.get("id"), exc_info=True)
            raise

        enrollment_id = result.get("enrollmentId") if isinstance(result, dict) else None
        self.profile["enrollments"] = self.profile["enrollments"] + [
            {
                "id": enrollment_id or f"enrollment_{course['id']}_{int(time.time() * 1000)}",
                "courseId": course["id"],
                "course": course,
                "enrolledAt": datetime.now(timezone.utc).isoformat(),
                "progress": 0,
            }
        ]
        self._save()

    def unenroll_from_course(self, course_id) -> None:
        self.profile["enrollments"] = [e for e in self.profile["enrollments"] if e["courseId"] != course_id]
        self._save()

    async def remove_enrollment(self, enrollment_id, course_id) -> dict[str, Any]:
        """Delete the enrollment on the server, then drop it from the local profile."""
        result = await self.api.enrollments.delete(enrollment_id)
        self.unenroll_from_course(course_id)
        return result

    def get_enrolled_courses(self) -> list[dict[str, Any]]:
        return [e["course"] for e in self.profile["enrollments"]]

    def get_favorited_courses(self, all_courses: list[dict[str, Any]]) -> list[dict[str, Any]]:
        favorites = self.profile["favoritesCourseIds"]
        return [c for c in all_courses if c["id"] in favorites]

    def update_course_progress(self, course_id, progress: int) -> None:
        self.profile["enrollments"] = [
            {**e, "progress": progress} if e["courseId"] == course_id else e for e in self.profile["enrollments"]
        ]
        self._save()
