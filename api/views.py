"""REST API viewsets and endpoints.

Handlers stay thin: filtering and ranking live in `courses.query`, the
enrollment lifecycle in `courses.services`. Every failure is raised and
left to `api.errors.api_exception_handler`.
"""
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view
from rest_framework.response import Response

from accounts.avatars import avatar_url
from courses import query, services
from courses.filters import CourseFilter
from courses.models import Category, Course, Enrollment, Lesson
from courses.utils import slug_from_title
from .errors import InvalidRequest, MissingParameter, get_or_404
from .serializers import (
    CategorySerializer,
    CourseDetailSerializer,
    CourseSearchSerializer,
    CourseSerializer,
    CourseWriteSerializer,
    EnrollmentSerializer,
    EnrollmentUpdateSerializer,
    EnrollmentWithCourseSerializer,
    LessonCompleteSerializer,
    LessonProgressSerializer,
    LessonSearchResultSerializer,
    LessonSearchSerializer,
    LessonSerializer,
    LessonWriteSerializer,
    UserCreateSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()


class CourseViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Course catalogue. Listing takes exact-match filters only; free text goes through search."""

    filterset_class = CourseFilter

    def get_queryset(self):
        qs = query.course_queryset().order_by("-created_at")
        if self.action == "retrieve":
            qs = qs.prefetch_related("lessons")
        return qs

    def get_serializer_class(self):
        if self.action == "retrieve":
            return CourseDetailSerializer
        if self.action in ("create", "update", "partial_update"):
            return CourseWriteSerializer
        return CourseSerializer

    def get_object(self):
        return get_or_404(self.get_queryset(), self.kwargs["pk"], "Course")

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        logger.info("Courses query returned %s courses", len(response.data))
        return response

    @action(detail=False, methods=["get"])
    def categories(self, request):
        return Response(CategorySerializer(Category.objects.all(), many=True).data)

    def perform_create(self, serializer):
        title = serializer.validated_data["title"]
        # A duplicate slug fails on the unique constraint; the savepoint keeps the outer transaction usable.
        with transaction.atomic():
            course = serializer.save(slug=slug_from_title(title))
        logger.info("Created course %s (%s)", course.pk, course.slug)

    def update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        return super().update(request, *args, **kwargs)


class LessonViewSet(
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Lesson.objects.select_related("course")

    def get_serializer_class(self):
        if self.action in ("create", "update", "partial_update"):
            return LessonWriteSerializer
        return LessonSerializer

    def get_object(self):
        return get_or_404(self.get_queryset(), self.kwargs["pk"], "Lesson")

    @action(detail=False, methods=["get"], url_path=r"course/(?P<course_id>[^/.]+)")
    def by_course(self, request, course_id=None):
        course = get_or_404(Course.objects.all(), course_id, "Course")
        lessons = Lesson.objects.filter(course=course).order_by("order")
        return Response(LessonSerializer(lessons, many=True).data)

    def perform_create(self, serializer):
        data = dict(serializer.validated_data)
        course = data.pop("course")
        serializer.instance = services.create_lesson(course, **data)
        logger.info("Created lesson %s in course %s", serializer.instance.pk, course.pk)

    def update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        return super().update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):
        lesson = self.get_object()
        lesson_id = lesson.pk
        lesson.delete()
        return Response({"success": True, "deletedId": lesson_id})

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        lesson = self.get_object()
        serializer = LessonCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        enrollment = data["enrollmentId"]
        if enrollment.course_id != lesson.course_id:
            raise InvalidRequest("Enrollment does not belong to this lesson's course")
        if enrollment.user_id != data["userId"].pk:
            raise InvalidRequest("Enrollment does not belong to this user")
        progress = services.complete_lesson(
            lesson,
            user=data["userId"],
            enrollment=enrollment,
            time_spent=data["timeSpent"],
            last_position=data.get("lastPosition"),
        )
        services.refresh_progress(enrollment)
        return Response(LessonProgressSerializer(progress).data)


class EnrollmentViewSet(viewsets.GenericViewSet):
    queryset = Enrollment.objects.select_related("course", "user")
    serializer_class = EnrollmentSerializer

    def get_object(self):
        return get_or_404(self.get_queryset(), self.kwargs["pk"], "Enrollment")

    def create(self, request):
        course_id = request.data.get("courseId")
        user_id = request.data.get("userId")
        logger.info("Checking enrollment request user=%s course=%s", user_id, course_id)

        if not course_id:
            raise InvalidRequest("Course ID is required.")
        course = get_or_404(Course.objects.all(), course_id, "Course", message=f"Course with id {course_id} not found")
        # Not validated like courseId: a missing user id surfaces as an internal error.
        if not user_id:
            raise ValueError("User ID is missing")
        user = get_or_404(User.objects.all(), user_id, "User")

        enrollment, created = services.enroll(user, course)
        return Response(
            {
                "success": True,
                "message": "Enrollment created" if created else "Already enrolled",
                "courseId": course.pk,
                "userId": user.pk,
                "enrollmentId": enrollment.pk,
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @action(detail=False, methods=["get"], url_path=r"user/(?P<user_id>[^/.]+)")
    def for_user(self, request, user_id=None):
        if not str(user_id).isdigit():
            return Response([])
        enrollments = (
            Enrollment.objects.filter(user_id=user_id)
            .select_related("course__instructor__profile")
            .order_by("enrolled_at", "id")
        )
        data = EnrollmentWithCourseSerializer(enrollments, many=True).data
        logger.info("Returning %s enrollments for user %s", len(data), user_id)
        return Response(data)

    def retrieve(self, request, pk=None):
        enrollment = self.get_object()
        snapshot = services.refresh_progress(enrollment)
        course = query.course_queryset().get(pk=enrollment.course_id)
        body = EnrollmentSerializer(enrollment).data
        body.update(
            {
                "course": CourseSerializer(course).data,
                "lessons": LessonSerializer(snapshot["lessons"], many=True).data,
                "completedLessons": snapshot["completed_lesson_ids"],
                "progress": snapshot["progress"],
            }
        )
        return Response(body)

    def update(self, request, pk=None):
        enrollment = self.get_object()
        serializer = EnrollmentUpdateSerializer(enrollment, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save(last_accessed_at=timezone.now())
        return Response(serializer.data)

    @action(detail=True, methods=["get"])
    def progress(self, request, pk=None):
        enrollment = self.get_object()
        report = services.progress_report(enrollment)
        lessons = []
        for row in report["lessons"]:
            item = LessonSerializer(row["lesson"]).data
            item.update(
                {
                    "completed": row["completed"],
                    "completedAt": row["completed_at"],
                    "timeSpent": row["time_spent"],
                    "lastPosition": row["last_position"],
                }
            )
            lessons.append(item)
        return Response(
            {
                "enrollmentId": enrollment.pk,
                "courseId": enrollment.course_id,
                "totalLessons": report["total_lessons"],
                "completedLessons": report["completed_lessons"],
                "progressPercentage": report["progress_percentage"],
                "totalTimeSpent": report["total_time_spent"],
                "lessons": lessons,
            }
        )

    def destroy(self, request, pk=None):
        enrollment = self.get_object()
        enrollment_id = enrollment.pk
        services.unenroll(enrollment)
        return Response({"success": True, "deletedId": enrollment_id})


class UserViewSet(mixins.CreateModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = User.objects.select_related("profile")

    def get_serializer_class(self):
        if self.action == "create":
            return UserCreateSerializer
        return UserSerializer

    def get_object(self):
        return get_or_404(self.get_queryset(), self.kwargs["pk"], "User")

    def retrieve(self, request, pk=None):
        user = self.get_object()
        body = UserSerializer(user).data
        body["stats"] = {
            "enrollmentCount": user.enrollments.count(),
            "completedCourses": user.enrollments.filter(completed_at__isnull=False).count(),
            "certificateCount": user.certificates.count(),
        }
        return Response(body)


def _require_single(params, name: str) -> str:
    values = params.getlist(name)
    if len(values) != 1:
        logger.warning("Search rejected: %r missing from %s", name, list(params.keys()))
        raise MissingParameter.for_query(name, params)
    return values[0]


@api_view(["GET"])
def search_courses(request):
    """Free-text course search with optional filters; `q` must be supplied (it may be empty)."""
    params = request.query_params
    _require_single(params, "q")
    serializer = CourseSearchSerializer(data=params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    q = data["q"]
    filters = {
        "category": data.get("category") or None,
        "level": data.get("level") or None,
        "minRating": data.get("minRating"),
        "maxPrice": data.get("maxPrice"),
        "instructor": data.get("instructor") or None,
        "tags": data.get("tags") or None,
    }
    results = query.search_courses(
        q=q,
        category=filters["category"],
        level=filters["level"],
        min_rating=filters["minRating"],
        max_price=filters["maxPrice"],
        instructor=filters["instructor"],
        tags=filters["tags"],
    )
    logger.info("Course search %r returned %s results", q, len(results))
    return Response(
        {
            "results": CourseSerializer(results, many=True).data,
            "total": len(results),
            "query": q,
            "filters": filters,
        }
    )


@api_view(["GET"])
def search_lessons(request):
    serializer = LessonSearchSerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    results = query.search_lessons(q=data["q"], course_id=data.get("courseId"), lesson_type=data.get("type"))
    payload = LessonSearchResultSerializer(results, many=True).data
    return Response(
        {
            "results": payload,
            "total": len(payload),
            "query": data["q"],
            "filters": {"courseId": data.get("courseId"), "type": data.get("type")},
        }
    )


@api_view(["GET"])
def search_all(request):
    """Search courses, lessons and instructors at once."""
    q = _require_single(request.query_params, "q")
    hits = query.global_search(q)
    courses = [
        {
            "id": c.pk,
            "title": c.title,
            "slug": c.slug,
            "description": c.description,
            "thumbnail": c.thumbnail,
            "category": c.category,
            "rating": str(c.rating),
            "type": "course",
        }
        for c in hits["courses"]
    ]
    lessons = [
        {
            "id": lesson.pk,
            "title": lesson.title,
            "description": lesson.description,
            "courseId": lesson.course_id,
            "type": "lesson",
        }
        for lesson in hits["lessons"]
    ]
    instructors = [
        {
            "id": p.user_id,
            "name": p.display_name,
            "bio": p.bio,
            "avatarUrl": avatar_url(p.user),
            "type": "instructor",
        }
        for p in hits["instructors"]
    ]
    return Response(
        {
            "courses": courses,
            "lessons": lessons,
            "instructors": instructors,
            "total": len(courses) + len(lessons) + len(instructors),
            "query": q,
        }
    )


@api_view(["GET"])
def search_suggestions(request):
    q = _require_single(request.query_params, "q")
    return Response(query.suggestions(q))
