from __future__ import annotations

import pytest

from courses import services
from courses.models import Certificate, Course, Enrollment, LessonProgress


def _enrollment_count(course) -> int:
    return Course.objects.get(pk=course.pk).enrollment_count


@pytest.mark.django_db
def test_enroll_is_idempotent_and_counts_once(make_course, student):
    course = make_course()
    first, created = services.enroll(student, course)
    assert created
    again, created_again = services.enroll(student, course)
    assert not created_again
    assert again.pk == first.pk
    assert Enrollment.objects.filter(user=student, course=course).count() == 1
    assert _enrollment_count(course) == 1


@pytest.mark.django_db
def test_unenroll_removes_row_and_decrements(make_course, student, make_user):
    course = make_course()
    other = make_user("kim@example.com", "Kim")
    enrollment, _ = services.enroll(student, course)
    services.enroll(other, course)
    assert _enrollment_count(course) == 2

    services.unenroll(enrollment)
    assert not Enrollment.objects.filter(pk=enrollment.pk).exists()
    assert _enrollment_count(course) == 1


@pytest.mark.django_db
def test_create_lesson_appends_order_and_slug(make_course, make_lesson):
    course = make_course()
    first = make_lesson(course, "Getting Started!")
    second = make_lesson(course, "Next Steps")
    assert (first.order, second.order) == (1, 2)
    assert first.slug == "getting-started"
    assert services.next_lesson_order(make_course()) == 1


@pytest.mark.django_db
def test_complete_lesson_is_idempotent(make_course, make_lesson, student):
    course = make_course()
    lesson = make_lesson(course)
    enrollment, _ = services.enroll(student, course)

    progress = services.complete_lesson(lesson, user=student, enrollment=enrollment, time_spent=30, last_position=12)
    completed_at = progress.completed_at
    assert completed_at is not None
    again = services.complete_lesson(lesson, user=student, enrollment=enrollment, time_spent=99)
    assert again.pk == progress.pk
    assert again.completed_at == completed_at
    assert again.time_spent == 30
    assert LessonProgress.objects.count() == 1


@pytest.mark.django_db
def test_complete_lesson_finishes_an_existing_row(make_course, make_lesson, student):
    course = make_course()
    lesson = make_lesson(course)
    enrollment, _ = services.enroll(student, course)
    started = LessonProgress.objects.create(user=student, lesson=lesson, enrollment=enrollment, time_spent=10)

    done = services.complete_lesson(lesson, user=student, enrollment=enrollment, time_spent=5, last_position=40)
    assert done.pk == started.pk
    assert done.completed_at is not None
    assert (done.time_spent, done.last_position) == (15, 40)


@pytest.mark.django_db
def test_refresh_progress_rounds_and_persists(make_course, make_lesson, student):
    course = make_course()
    lessons = [make_lesson(course, f"Lesson {i}") for i in range(8)]
    enrollment, _ = services.enroll(student, course)
    services.complete_lesson(lessons[0], user=student, enrollment=enrollment)

    snapshot = services.refresh_progress(enrollment)
    assert snapshot["progress"] == 13
    assert snapshot["completed_lesson_ids"] == [lessons[0].pk]
    assert [lesson.order for lesson in snapshot["lessons"]] == list(range(1, 9))
    assert Enrollment.objects.get(pk=enrollment.pk).progress == 13
    assert Certificate.objects.count() == 0


@pytest.mark.django_db
def test_refresh_progress_completes_and_certifies(make_course, make_lesson, student):
    course = make_course()
    lessons = [make_lesson(course, f"Lesson {i}") for i in range(2)]
    enrollment, _ = services.enroll(student, course)
    for lesson in lessons:
        services.complete_lesson(lesson, user=student, enrollment=enrollment)

    assert services.refresh_progress(enrollment)["progress"] == 100
    services.refresh_progress(enrollment)
    stored = Enrollment.objects.get(pk=enrollment.pk)
    assert stored.completed_at is not None
    assert stored.state == Enrollment.STATE_COMPLETED
    assert Certificate.objects.filter(enrollment=enrollment).count() == 1


@pytest.mark.django_db
def test_progress_report(make_course, make_lesson, student):
    course = make_course()
    first = make_lesson(course, "One")
    make_lesson(course, "Two")
    make_lesson(course, "Three")
    enrollment, _ = services.enroll(student, course)
    services.complete_lesson(first, user=student, enrollment=enrollment, time_spent=120, last_position=7)

    report = services.progress_report(enrollment)
    assert report["total_lessons"] == 3
    assert report["completed_lessons"] == 1
    assert report["progress_percentage"] == 33
    assert report["total_time_spent"] == 120
    assert [row["completed"] for row in report["lessons"]] == [True, False, False]
    assert report["lessons"][0]["last_position"] == 7


@pytest.mark.django_db
def test_progress_for_course_without_lessons(make_course, student):
    enrollment, _ = services.enroll(student, make_course())
    assert services.refresh_progress(enrollment)["progress"] == 0
    assert services.progress_report(enrollment)["progress_percentage"] == 0


@pytest.mark.django_db
def test_progress_reads_ignore_rows_of_other_users(make_course, make_lesson, student, make_user):
    course = make_course()
    lesson = make_lesson(course, "Only lesson")
    enrollment, _ = services.enroll(student, course)
    other = make_user("kim@example.com", "Kim Other")
    services.complete_lesson(lesson, user=other, enrollment=enrollment)

    assert services.refresh_progress(enrollment)["progress"] == 0
    assert services.progress_report(enrollment)["progress_percentage"] == 0
