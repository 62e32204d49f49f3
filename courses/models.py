"""Catalogue and enrollment models.

`Course` is owned by an instructor and owns its `Lesson` rows (deleting a
course deletes its lessons). `Enrollment` links a student to a course and
anchors per-lesson `LessonProgress` and the `Certificate` issued on
completion. Duplicate enrollments are prevented at the application level
(see `courses.services.enroll`), not by a schema constraint.
"""
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Category(models.Model):
    """A browsing category shown on the catalogue page."""

    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    icon = models.CharField(max_length=50, blank=True)
    order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["order", "name"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class Level(models.TextChoices):
    BEGINNER = "beginner", "Beginner"
    INTERMEDIATE = "intermediate", "Intermediate"
    ADVANCED = "advanced", "Advanced"


class CourseStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"
    ARCHIVED = "archived", "Archived"


class Course(models.Model):
    """A course authored by an instructor user."""

    title = models.CharField(max_length=255)
    slug = models.CharField(max_length=255, unique=True)
    description = models.TextField()
    instructor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="courses_taught")
    thumbnail = models.CharField(max_length=500, blank=True)
    category = models.CharField(max_length=100)
    tags = models.JSONField(default=list, blank=True)
    level = models.CharField(max_length=16, choices=Level.choices)
    status = models.CharField(max_length=16, choices=CourseStatus.choices, default=CourseStatus.DRAFT)
    duration = models.CharField(max_length=50, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    review_count = models.IntegerField(default=0)
    enrollment_count = models.IntegerField(default=0)
    is_featured = models.BooleanField(default=False)
    prerequisites = models.JSONField(default=list, blank=True)
    learning_objectives = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    published_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(rating__gte=0) & Q(rating__lte=5),
                name="course_rating_0_5",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.title}"


class LessonType(models.TextChoices):
    VIDEO = "video", "Video"
    TEXT = "text", "Text"
    QUIZ = "quiz", "Quiz"
    ASSIGNMENT = "assignment", "Assignment"


class Lesson(models.Model):
    """One step of a course. `order` defines the sequence within the course."""

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="lessons")
    title = models.CharField(max_length=255)
    slug = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    type = models.CharField(max_length=16, choices=LessonType.choices)
    # Text lessons carry `content`, video lessons carry `video_url`
    content = models.TextField(blank=True)
    video_url = models.CharField(max_length=500, blank=True)
    duration = models.CharField(max_length=50, blank=True)
    order = models.PositiveIntegerField()
    is_free = models.BooleanField(default=False)
    resources = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["course_id", "order"]
        constraints = [
            models.UniqueConstraint(fields=["course", "order"], name="lesson_order_unique_per_course"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.course_id}#{self.order} {self.title}"


class Enrollment(models.Model):
    """Link a student to a course, carrying the derived progress percentage.

    Lifecycle: created on enroll, in progress while lessons are completed,
    completed once progress reaches 100 (`completed_at` set). Unenrolling
    deletes the row.
    """

    STATE_CREATED = "created"
    STATE_IN_PROGRESS = "in-progress"
    STATE_COMPLETED = "completed"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="enrollments")
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="enrollments")
    enrolled_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    last_accessed_at = models.DateTimeField(null=True, blank=True)
    progress = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["enrolled_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(progress__gte=0) & Q(progress__lte=100),
                name="enrollment_progress_0_100",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_id}->{self.course_id}"

    @property
    def state(self) -> str:
        if self.completed_at is not None or self.progress >= 100:
            return self.STATE_COMPLETED
        if self.progress > 0:
            return self.STATE_IN_PROGRESS
        return self.STATE_CREATED


class LessonProgress(models.Model):
    """Per-user, per-lesson completion and resume state within an enrollment."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="lesson_progress")
    lesson = models.ForeignKey(Lesson, on_delete=models.CASCADE, related_name="progress")
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name="lesson_progress")
    completed_at = models.DateTimeField(null=True, blank=True)
    time_spent = models.PositiveIntegerField(default=0)  # seconds
    last_position = models.PositiveIntegerField(default=0)  # resume offset
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "lesson progress"

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_id}:{self.lesson_id}"


class Certificate(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="certificates")
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="certificates")
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name="certificates")
    certificate_url = models.CharField(max_length=500, blank=True)
    issued_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-issued_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_id}:{self.course_id}@{self.issued_at:%Y-%m-%d}"


# Register the review model with the app registry alongside the catalogue models.
from .models_reviews import Review  # noqa: E402,F401
