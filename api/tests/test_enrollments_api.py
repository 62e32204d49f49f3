from __future__ import annotations

import pytest

from courses import services
from courses.models import Course, Enrollment


def _count(course) -> int:
    return Course.objects.get(pk=course.pk).enrollment_count


@pytest.mark.django_db
def test_enroll_creates_once(api_client, make_course, student):
    course = make_course()
    r = api_client.post("/api/enrollments", {"courseId": course.pk, "userId": student.pk}, format="json")
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert (body["courseId"], body["userId"]) == (course.pk, student.pk)
    enrollment_id = body["enrollmentId"]

    r = api_client.post("/api/enrollments", {"courseId": course.pk, "userId": student.pk}, format="json")
    assert r.status_code == 200
    assert r.json()["enrollmentId"] == enrollment_id
    assert Enrollment.objects.filter(user=student, course=course).count() == 1
    assert _count(course) == 1


@pytest.mark.django_db
def test_enroll_requires_course_id(api_client, student):
    r = api_client.post("/api/enrollments", {"userId": student.pk}, format="json")
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Course ID is required."
    assert body["code"] == "VALIDATION_ERROR"


@pytest.mark.django_db
def test_enroll_unknown_course_is_404_naming_the_id(api_client, student):
    r = api_client.post("/api/enrollments", {"courseId": 987654, "userId": student.pk}, format="json")
    assert r.status_code == 404
    assert "987654" in r.json()["error"]
    assert Enrollment.objects.count() == 0


@pytest.mark.django_db
def test_enroll_without_user_id_is_an_internal_error(api_client, make_course):
    course = make_course()
    r = api_client.post("/api/enrollments", {"courseId": course.pk}, format="json")
    assert r.status_code == 500
    body = r.json()
    assert body == {
        "error": True,
        "message": "User ID is missing",
        "code": "INTERNAL_ERROR",
        "path": "/api/enrollments",
    }
    assert _count(course) == 0


@pytest.mark.django_db
def test_enroll_unknown_user_is_404(api_client, make_course):
    r = api_client.post("/api/enrollments", {"courseId": make_course().pk, "userId": 5555}, format="json")
    assert r.status_code == 404
    assert r.json()["error"] == "User not found"


@pytest.mark.django_db
def test_list_for_user_embeds_course_and_instructor(api_client, make_course, student):
    first = make_course("First")
    second = make_course("Second")
    services.enroll(student, first)
    services.enroll(student, second)

    r = api_client.get(f"/api/enrollments/user/{student.pk}")
    assert r.status_code == 200
    body = r.json()
    assert [e["course"]["title"] for e in body] == ["First", "Second"]
    assert body[0]["course"]["instructor"] == "Ada Lovelace"
    assert body[0]["userId"] == student.pk
    assert api_client.get("/api/enrollments/user/unknown").json() == []


@pytest.mark.django_db
def test_get_enrollment_refreshes_progress(api_client, make_course, make_lesson, student):
    course = make_course()
    lessons = [make_lesson(course, f"L{i}") for i in range(3)]
    enrollment, _ = services.enroll(student, course)
    services.complete_lesson(lessons[1], user=student, enrollment=enrollment)

    r = api_client.get(f"/api/enrollments/{enrollment.pk}")
    assert r.status_code == 200
    body = r.json()
    assert body["progress"] == 33
    assert body["completedLessons"] == [lessons[1].pk]
    assert [lesson["title"] for lesson in body["lessons"]] == ["L0", "L1", "L2"]
    assert body["course"]["id"] == course.pk
    assert Enrollment.objects.get(pk=enrollment.pk).progress == 33


@pytest.mark.django_db
def test_put_enrollment_touches_last_accessed(api_client, make_course, student):
    enrollment, _ = services.enroll(student, make_course())
    before = enrollment.last_accessed_at
    r = api_client.put(f"/api/enrollments/{enrollment.pk}", {"progress": 50}, format="json")
    assert r.status_code == 200
    assert r.json()["progress"] == 50
    enrollment.refresh_from_db()
    assert enrollment.last_accessed_at > before

    r = api_client.put(f"/api/enrollments/{enrollment.pk}", {"progress": 150}, format="json")
    assert r.status_code == 400
    assert api_client.put("/api/enrollments/999", {}, format="json").status_code == 404


@pytest.mark.django_db
def test_progress_details(api_client, make_course, make_lesson, student):
    course = make_course()
    first = make_lesson(course, "One")
    make_lesson(course, "Two")
    enrollment, _ = services.enroll(student, course)
    services.complete_lesson(first, user=student, enrollment=enrollment, time_spent=90, last_position=30)

    r = api_client.get(f"/api/enrollments/{enrollment.pk}/progress")
    assert r.status_code == 200
    body = r.json()
    assert body["enrollmentId"] == enrollment.pk
    assert body["totalLessons"] == 2
    assert body["completedLessons"] == 1
    assert body["progressPercentage"] == 50
    assert body["totalTimeSpent"] == 90
    assert [(lesson["title"], lesson["completed"]) for lesson in body["lessons"]] == [("One", True), ("Two", False)]
    assert body["lessons"][0]["lastPosition"] == 30
    assert body["lessons"][1]["completedAt"] is None


@pytest.mark.django_db
def test_unenroll_decrements_and_removes(api_client, make_course, student):
    course = make_course()
    enrollment, _ = services.enroll(student, course)
    assert _count(course) == 1

    r = api_client.delete(f"/api/enrollments/{enrollment.pk}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "deletedId": enrollment.pk}
    assert _count(course) == 0

    r = api_client.get(f"/api/enrollments/{enrollment.pk}")
    assert r.status_code == 404
    assert r.json()["error"] == "Enrollment not found"
    assert api_client.delete(f"/api/enrollments/{enrollment.pk}").status_code == 404
