"""Enrollment lifecycle and lesson progress.

Multi-step writes (enroll + counter, unenroll + counter, completion +
certificate) run inside one transaction so the course's enrollment
counter never drifts from the enrollment rows.
"""
from __future__ import annotations

import logging
from typing import Any

from django.db import transaction
from django.db.models import F, Max
from django.utils import timezone

from .models import Certificate, Course, Enrollment, Lesson, LessonProgress
from .utils import percentage, slug_from_title

logger = logging.getLogger(__name__)


@transaction.atomic
def enroll(user, course: Course) -> tuple[Enrollment, bool]:
    """Enroll `user` in `course` once; repeated calls return the existing row.

    Returns (enrollment, created). The course counter only moves on creation.
    """
    existing = Enrollment.objects.filter(user=user, course=course).first()
    if existing is not None:
        return existing, False
    enrollment = Enrollment.objects.create(user=user, course=course, last_accessed_at=timezone.now())
    Course.objects.filter(pk=course.pk).update(enrollment_count=F("enrollment_count") + 1)
    logger.info("Enrolled user %s in course %s (enrollment %s)", user.pk, course.pk, enrollment.pk)
    return enrollment, True


@transaction.atomic
def unenroll(enrollment: Enrollment) -> None:
    """Delete the enrollment and decrement its course's counter together."""
    course_id = enrollment.course_id
    enrollment_id = enrollment.pk
    enrollment.delete()
    Course.objects.filter(pk=course_id).update(enrollment_count=F("enrollment_count") - 1)
    logger.info("Removed enrollment %s from course %s", enrollment_id, course_id)


def issue_certificate(enrollment: Enrollment) -> Certificate:
    certificate, created = Certificate.objects.get_or_create(
        enrollment=enrollment,
        defaults={"user_id": enrollment.user_id, "course_id": enrollment.course_id},
    )
    if created:
        logger.info("Issued certificate %s for enrollment %s", certificate.pk, enrollment.pk)
    return certificate


@transaction.atomic
def refresh_progress(enrollment: Enrollment) -> dict[str, Any]:
    """Recompute progress from completed lessons and persist it if it changed.

    Reaching 100% marks the enrollment completed and issues its certificate.
    Returns the ordered lessons and the completed lesson ids alongside the
    percentage.
    """
    lessons = list(Lesson.objects.filter(course_id=enrollment.course_id).order_by("order"))
    completed_ids = list(
        LessonProgress.objects.filter(
            enrollment=enrollment,
            user_id=enrollment.user_id,
            completed_at__isnull=False,
        ).values_list("lesson_id", flat=True)
    )
    progress = percentage(len(completed_ids), len(lessons))

    update_fields = []
    if progress != enrollment.progress:
        enrollment.progress = progress
        update_fields.append("progress")
    if progress == 100 and enrollment.completed_at is None:
        enrollment.completed_at = timezone.now()
        update_fields.append("completed_at")
    if update_fields:
        enrollment.save(update_fields=update_fields)
    if progress == 100:
        issue_certificate(enrollment)

    return {"lessons": lessons, "completed_lesson_ids": completed_ids, "progress": progress}


def progress_report(enrollment: Enrollment) -> dict[str, Any]:
    """Per-lesson progress for an enrollment, lessons in course order."""
    lessons = list(Lesson.objects.filter(course_id=enrollment.course_id).order_by("order"))
    rows_qs = LessonProgress.objects.filter(enrollment=enrollment, user_id=enrollment.user_id)
    by_lesson = {p.lesson_id: p for p in rows_qs}
    rows = []
    completed = 0
    total_time = 0
    for lesson in lessons:
        p = by_lesson.get(lesson.pk)
        done = bool(p and p.completed_at)
        completed += int(done)
        total_time += p.time_spent if p else 0
        rows.append(
            {
                "lesson": lesson,
                "completed": done,
                "completed_at": p.completed_at if p else None,
                "time_spent": p.time_spent if p else 0,
                "last_position": p.last_position if p else 0,
            }
        )
    return {
        "total_lessons": len(lessons),
        "completed_lessons": completed,
        "progress_percentage": percentage(completed, len(lessons)),
        "total_time_spent": total_time,
        "lessons": rows,
    }


def complete_lesson(
    lesson: Lesson,
    *,
    user,
    enrollment: Enrollment,
    time_spent: int = 0,
    last_position: int | None = None,
) -> LessonProgress:
    """Mark a lesson completed for a user; an already-completed row is returned as is."""
    existing = LessonProgress.objects.filter(user=user, lesson=lesson).first()
    if existing is not None and existing.completed_at is not None:
        return existing
    now = timezone.now()
    if existing is None:
        return LessonProgress.objects.create(
            user=user,
            lesson=lesson,
            enrollment=enrollment,
            completed_at=now,
            time_spent=time_spent,
            last_position=last_position or 0,
        )
    existing.completed_at = now
    existing.time_spent += time_spent
    if last_position is not None:
        existing.last_position = last_position
    existing.save(update_fields=["completed_at", "time_spent", "last_position", "updated_at"])
    return existing


def next_lesson_order(course: Course) -> int:
    current = Lesson.objects.filter(course=course).aggregate(top=Max("order"))["top"]
    return (current or 0) + 1


def create_lesson(course: Course, **fields) -> Lesson:
    title = fields.pop("title")
    return Lesson.objects.create(
        course=course,
        title=title,
        slug=slug_from_title(title),
        order=next_lesson_order(course),
        **fields,
    )
