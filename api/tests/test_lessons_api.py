from __future__ import annotations

import pytest

from courses import services
from courses.models import Enrollment, Lesson, LessonProgress


@pytest.mark.django_db
def test_create_appends_to_course(api_client, make_course):
    course = make_course()
    payload = {"courseId": course.pk, "title": "Intro to Spans", "type": "video", "videoUrl": "https://v.example/1"}
    first = api_client.post("/api/lessons", payload, format="json")
    assert first.status_code == 201
    body = first.json()
    assert (body["slug"], body["order"], body["videoUrl"]) == ("intro-to-spans", 1, "https://v.example/1")

    second = api_client.post("/api/lessons", {**payload, "title": "Sampling"}, format="json")
    assert second.json()["order"] == 2


@pytest.mark.django_db
def test_create_for_unknown_course_is_rejected(api_client):
    r = api_client.post("/api/lessons", {"courseId": 31337, "title": "x", "type": "text"}, format="json")
    assert r.status_code == 400
    assert "courseId" in r.json()["details"]


@pytest.mark.django_db
def test_lessons_by_course_in_order(api_client, make_course, make_lesson):
    course = make_course()
    make_lesson(course, "A")
    make_lesson(course, "B")
    make_lesson(make_course(), "Elsewhere")
    r = api_client.get(f"/api/lessons/course/{course.pk}")
    assert r.status_code == 200
    assert [lesson["title"] for lesson in r.json()] == ["A", "B"]
    assert api_client.get("/api/lessons/course/99999").status_code == 404


@pytest.mark.django_db
def test_get_update_and_delete(api_client, make_course, make_lesson):
    lesson = make_lesson(make_course(), "Draft")
    assert api_client.get(f"/api/lessons/{lesson.pk}").json()["title"] == "Draft"

    r = api_client.put(f"/api/lessons/{lesson.pk}", {"isFree": True}, format="json")
    assert r.status_code == 200
    assert r.json()["isFree"] is True
    assert r.json()["title"] == "Draft"

    r = api_client.delete(f"/api/lessons/{lesson.pk}")
    assert r.json() == {"success": True, "deletedId": lesson.pk}
    assert not Lesson.objects.filter(pk=lesson.pk).exists()
    r = api_client.get(f"/api/lessons/{lesson.pk}")
    assert r.status_code == 404
    assert r.json()["error"] == "Lesson not found"


@pytest.mark.django_db
def test_complete_lesson_is_idempotent_and_updates_progress(api_client, make_course, make_lesson, student):
    course = make_course()
    lesson = make_lesson(course, "Only lesson")
    enrollment, _ = services.enroll(student, course)
    payload = {"userId": student.pk, "enrollmentId": enrollment.pk, "timeSpent": 45}

    r = api_client.post(f"/api/lessons/{lesson.pk}/complete", payload, format="json")
    assert r.status_code == 200
    body = r.json()
    assert body["completedAt"] is not None
    assert body["timeSpent"] == 45

    again = api_client.post(f"/api/lessons/{lesson.pk}/complete", payload, format="json").json()
    assert again["id"] == body["id"]
    assert again["timeSpent"] == 45
    assert LessonProgress.objects.count() == 1
    assert Enrollment.objects.get(pk=enrollment.pk).progress == 100


@pytest.mark.django_db
def test_complete_with_enrollment_of_another_user(api_client, make_course, make_lesson, student, make_user):
    course = make_course()
    lesson = make_lesson(course, "Only lesson")
    enrollment, _ = services.enroll(student, course)
    other = make_user("kim@example.com", "Kim Other")

    r = api_client.post(
        f"/api/lessons/{lesson.pk}/complete",
        {"userId": other.pk, "enrollmentId": enrollment.pk},
        format="json",
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Enrollment does not belong to this user"
    assert LessonProgress.objects.count() == 0
    assert api_client.get(f"/api/enrollments/{enrollment.pk}").json()["progress"] == 0
    assert api_client.get(f"/api/enrollments/{enrollment.pk}/progress").json()["progressPercentage"] == 0


@pytest.mark.django_db
def test_complete_with_enrollment_of_another_course(api_client, make_course, make_lesson, student):
    lesson = make_lesson(make_course())
    enrollment, _ = services.enroll(student, make_course())
    r = api_client.post(
        f"/api/lessons/{lesson.pk}/complete",
        {"userId": student.pk, "enrollmentId": enrollment.pk},
        format="json",
    )
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"
