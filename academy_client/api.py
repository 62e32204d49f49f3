"""Async HTTP client for the Academy REST API.

Every call goes through `AcademyApi.request`, which turns non-2xx responses
into `ApiError(status, message)` using the server's `message` field, and
transport failures into `ApiError(0, NETWORK_ERROR)`.
"""
from __future__ import annotations

import logging
import os
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api"
NETWORK_ERROR = "Network error: Unable to connect to the server"


class ApiError(Exception):
    """A failed API call. `status` is the HTTP status, or 0 when no response arrived."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def _compact(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class _Group:
    def __init__(self, api: "AcademyApi"):
        self._api = api


class Courses(_Group):
    async def get_all(self, *, category: str | None = None, level: str | None = None, featured: bool | None = None):
        params = _compact({"category": category, "level": level})
        if featured is not None:
            params["featured"] = "true" if featured else "false"
        return await self._api.request("GET", "/courses", params=params or None)

    async def get_by_id(self, course_id):
        return await self._api.request("GET", f"/courses/{course_id}")

    async def create(self, data: dict[str, Any]):
        return await self._api.request("POST", "/courses", json=data)

    async def update(self, course_id, data: dict[str, Any]):
        return await self._api.request("PUT", f"/courses/{course_id}", json=data)

    async def get_categories(self):
        return await self._api.request("GET", "/courses/categories")


class Lessons(_Group):
    async def get_by_course(self, course_id):
        return await self._api.request("GET", f"/lessons/course/{course_id}")

    async def get_by_id(self, lesson_id):
        return await self._api.request("GET", f"/lessons/{lesson_id}")

    async def create(self, data: dict[str, Any]):
        return await self._api.request("POST", "/lessons", json=data)

    async def update(self, lesson_id, data: dict[str, Any]):
        return await self._api.request("PUT", f"/lessons/{lesson_id}", json=data)

    async def mark_complete(self, lesson_id, *, user_id, enrollment_id, time_spent=None, last_position=None):
        body = _compact(
            {
                "userId": user_id,
                "enrollmentId": enrollment_id,
                "timeSpent": time_spent,
                "lastPosition": last_position,
            }
        )
        return await self._api.request("POST", f"/lessons/{lesson_id}/complete", json=body)


class Enrollments(_Group):
    async def create(self, course_id, user_id):
        return await self._api.request("POST", "/enrollments", json={"courseId": course_id, "userId": user_id})

    async def list_for_user(self, user_id):
        return await self._api.request("GET", f"/enrollments/user/{user_id}")

    async def get(self, enrollment_id):
        return await self._api.request("GET", f"/enrollments/{enrollment_id}")

    async def get_progress(self, enrollment_id):
        return await self._api.request("GET", f"/enrollments/{enrollment_id}/progress")

    async def delete(self, enrollment_id):
        return await self._api.request("DELETE", f"/enrollments/{enrollment_id}")


class Users(_Group):
    async def get(self, user_id):
        return await self._api.request("GET", f"/users/{user_id}")

    async def create(self, data: dict[str, Any]):
        return await self._api.request("POST", "/users", json=data)


class Search(_Group):
    async def courses(
        self,
        query: str,
        *,
        category: str | None = None,
        level: str | None = None,
        min_rating: float | None = None,
        max_price: float | None = None,
        instructor: str | None = None,
        tags: list[str] | None = None,
    ):
        # The server reads the search text from `q`.
        params = _compact(
            {
                "q": query,
                "category": category,
                "level": level,
                "minRating": min_rating,
                "maxPrice": max_price,
                "instructor": instructor,
                "tags": ",".join(tags) if tags else None,
            }
        )
        return await self._api.request("GET", "/search/courses", params=params)

    async def lessons(self, query: str = "", *, course_id=None, lesson_type: str | None = None):
        params = _compact({"q": query, "courseId": course_id, "type": lesson_type})
        return await self._api.request("GET", "/search/lessons", params=params)

    async def all(self, query: str):
        return await self._api.request("GET", "/search", params={"q": query})

    async def suggestions(self, prefix: str):
        return await self._api.request("GET", "/search/suggestions", params={"q": prefix})


class AcademyApi:
    """Client for the Academy API, grouped like the REST surface.

    Use as an async context manager, or call `aclose()` when done. Pass
    `transport` to route requests somewhere other than the network (tests
    use `httpx.MockTransport`).
    """

    def __init__(self, base_url: str | None = None, *, transport: httpx.AsyncBaseTransport | None = None, timeout: float = 10.0):
        self.base_url = (base_url or os.environ.get("ACADEMY_API_URL") or DEFAULT_API_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self.courses = Courses(self)
        self.lessons = Lessons(self)
        self.enrollments = Enrollments(self)
        self.users = Users(self)
        self.search = Search(self)

    async def __aenter__(self) -> "AcademyApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, endpoint: str, *, params=None, json=None) -> Any:
        try:
            response = await self._client.request(method, endpoint, params=params, json=json)
        except httpx.RequestError as exc:
            logger.error("%s %s failed: %s", method, endpoint, exc)
            raise ApiError(0, NETWORK_ERROR) from exc

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("message") if isinstance(body, dict) else None
            logger.error("%s %s -> %s %s", method, endpoint, response.status_code, message)
            raise ApiError(response.status_code, message or f"HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            logger.error("%s %s -> %s with a non-JSON body", method, endpoint, response.status_code)
            raise ApiError(response.status_code, "Invalid JSON response") from exc
