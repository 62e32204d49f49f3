"""Serializers for the Academy REST API.

The wire format is camelCase and every field is declared explicitly, so a
response never silently drops a nested value the client reads. Money and
rating values are decimals and render as strings.
"""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from accounts.avatars import avatar_url
from accounts.models import Role
from courses.models import Category, Course, Enrollment, Lesson, LessonProgress, Level, LessonType

User = get_user_model()


def _instructor_name(course: Course) -> str | None:
    profile = getattr(course.instructor, "profile", None)
    return profile.display_name if profile is not None else course.instructor.get_username()


class UserSerializer(serializers.ModelSerializer):
    name = serializers.SerializerMethodField()
    role = serializers.SerializerMethodField()
    avatarUrl = serializers.SerializerMethodField()
    bio = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = ("id", "email", "name", "role", "avatarUrl", "bio", "createdAt")

    def get_name(self, obj) -> str:
        profile = getattr(obj, "profile", None)
        return profile.display_name if profile is not None else obj.get_username()

    def get_role(self, obj) -> str | None:
        profile = getattr(obj, "profile", None)
        return getattr(profile, "role", None)

    def get_avatarUrl(self, obj) -> str:
        return avatar_url(obj)

    def get_bio(self, obj) -> str:
        profile = getattr(obj, "profile", None)
        return getattr(profile, "bio", "")


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=150)
    name = serializers.CharField(max_length=255)
    role = serializers.ChoiceField(choices=Role.choices, default=Role.STUDENT)
    bio = serializers.CharField(required=False, allow_blank=True, default="")
    avatarUrl = serializers.URLField(required=False, allow_blank=True, default="")

    def validate_email(self, value: str) -> str:
        value = value.strip()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    @transaction.atomic
    def create(self, validated_data):
        email = validated_data["email"]
        user = User.objects.create_user(username=email, email=email)
        profile = user.profile
        profile.name = validated_data["name"]
        profile.role = validated_data["role"]
        profile.bio = validated_data["bio"]
        profile.avatar_url = validated_data["avatarUrl"]
        profile.save()
        return user

    def to_representation(self, instance):
        return UserSerializer(instance, context=self.context).data


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ("id", "name", "slug", "description", "icon", "order")


class LessonSerializer(serializers.ModelSerializer):
    courseId = serializers.IntegerField(source="course_id", read_only=True)
    videoUrl = serializers.CharField(source="video_url", read_only=True)
    isFree = serializers.BooleanField(source="is_free", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Lesson
        fields = (
            "id",
            "courseId",
            "title",
            "slug",
            "description",
            "type",
            "content",
            "videoUrl",
            "duration",
            "order",
            "isFree",
            "resources",
            "createdAt",
            "updatedAt",
        )
        read_only_fields = fields


class LessonWriteSerializer(serializers.ModelSerializer):
    """Input for lesson create/update. `slug` and `order` are derived."""

    courseId = serializers.PrimaryKeyRelatedField(source="course", queryset=Course.objects.all())
    type = serializers.ChoiceField(choices=LessonType.choices)
    videoUrl = serializers.CharField(source="video_url", required=False, allow_blank=True)
    isFree = serializers.BooleanField(source="is_free", required=False)
    resources = serializers.ListField(child=serializers.JSONField(), required=False)

    class Meta:
        model = Lesson
        fields = ("courseId", "title", "description", "type", "content", "videoUrl", "duration", "isFree", "resources")

    def to_representation(self, instance):
        return LessonSerializer(instance, context=self.context).data


class LessonCompleteSerializer(serializers.Serializer):
    userId = serializers.PrimaryKeyRelatedField(queryset=User.objects.all())
    enrollmentId = serializers.PrimaryKeyRelatedField(queryset=Enrollment.objects.all())
    timeSpent = serializers.IntegerField(min_value=0, default=0)
    lastPosition = serializers.IntegerField(min_value=0, required=False)


class LessonProgressSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id")
    lessonId = serializers.IntegerField(source="lesson_id")
    enrollmentId = serializers.IntegerField(source="enrollment_id")
    completedAt = serializers.DateTimeField(source="completed_at")
    timeSpent = serializers.IntegerField(source="time_spent")
    lastPosition = serializers.IntegerField(source="last_position")

    class Meta:
        model = LessonProgress
        fields = ("id", "userId", "lessonId", "enrollmentId", "completedAt", "timeSpent", "lastPosition", "notes")
        read_only_fields = fields


class CourseSerializer(serializers.ModelSerializer):
    """Course as listed: the instructor is flattened to a display name."""

    instructor = serializers.SerializerMethodField()
    instructorId = serializers.IntegerField(source="instructor_id", read_only=True)
    reviewCount = serializers.IntegerField(source="review_count", read_only=True)
    enrollmentCount = serializers.IntegerField(source="enrollment_count", read_only=True)
    isFeatured = serializers.BooleanField(source="is_featured", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    publishedAt = serializers.DateTimeField(source="published_at", read_only=True)

    class Meta:
        model = Course
        fields = (
            "id",
            "title",
            "slug",
            "description",
            "instructor",
            "instructorId",
            "thumbnail",
            "category",
            "tags",
            "level",
            "status",
            "duration",
            "price",
            "rating",
            "reviewCount",
            "enrollmentCount",
            "isFeatured",
            "createdAt",
            "updatedAt",
            "publishedAt",
        )
        read_only_fields = fields

    def get_instructor(self, obj) -> str | None:
        return _instructor_name(obj)


class CourseDetailSerializer(CourseSerializer):
    instructorBio = serializers.SerializerMethodField()
    instructorAvatar = serializers.SerializerMethodField()
    learningObjectives = serializers.JSONField(source="learning_objectives", read_only=True)
    lessons = LessonSerializer(many=True, read_only=True)

    class Meta(CourseSerializer.Meta):
        fields = CourseSerializer.Meta.fields + (
            "instructorBio",
            "instructorAvatar",
            "prerequisites",
            "learningObjectives",
            "lessons",
        )
        read_only_fields = fields

    def get_instructorBio(self, obj) -> str:
        profile = getattr(obj.instructor, "profile", None)
        return getattr(profile, "bio", "")

    def get_instructorAvatar(self, obj) -> str:
        return avatar_url(obj.instructor)


class CourseWriteSerializer(serializers.ModelSerializer):
    """Input for course create/update. The slug is derived from the title on create."""

    instructorId = serializers.PrimaryKeyRelatedField(source="instructor", queryset=User.objects.all())
    tags = serializers.ListField(child=serializers.CharField(), required=False)
    level = serializers.ChoiceField(choices=Level.choices)
    isFeatured = serializers.BooleanField(source="is_featured", required=False)
    reviewCount = serializers.IntegerField(source="review_count", min_value=0, required=False)
    prerequisites = serializers.ListField(child=serializers.CharField(), required=False)
    learningObjectives = serializers.ListField(
        source="learning_objectives", child=serializers.CharField(), required=False
    )
    publishedAt = serializers.DateTimeField(source="published_at", required=False, allow_null=True)
    rating = serializers.DecimalField(max_digits=3, decimal_places=2, min_value=0, max_value=5, required=False)

    class Meta:
        model = Course
        fields = (
            "title",
            "description",
            "instructorId",
            "thumbnail",
            "category",
            "tags",
            "level",
            "status",
            "duration",
            "price",
            "rating",
            "reviewCount",
            "isFeatured",
            "prerequisites",
            "learningObjectives",
            "publishedAt",
        )

    def to_representation(self, instance):
        return CourseSerializer(instance, context=self.context).data


class EnrollmentSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    courseId = serializers.IntegerField(source="course_id", read_only=True)
    enrolledAt = serializers.DateTimeField(source="enrolled_at", read_only=True)
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True)
    lastAccessedAt = serializers.DateTimeField(source="last_accessed_at", read_only=True)

    class Meta:
        model = Enrollment
        fields = ("id", "userId", "courseId", "enrolledAt", "completedAt", "lastAccessedAt", "progress", "state")
        read_only_fields = fields


class EnrollmentWithCourseSerializer(EnrollmentSerializer):
    """Enrollment row with its course embedded; `course.instructor` is the instructor's name."""

    course = CourseSerializer(read_only=True)

    class Meta(EnrollmentSerializer.Meta):
        fields = EnrollmentSerializer.Meta.fields + ("course",)
        read_only_fields = fields


class EnrollmentUpdateSerializer(serializers.ModelSerializer):
    progress = serializers.IntegerField(min_value=0, max_value=100, required=False)
    completedAt = serializers.DateTimeField(source="completed_at", required=False, allow_null=True)

    class Meta:
        model = Enrollment
        fields = ("progress", "completedAt")

    def to_representation(self, instance):
        return EnrollmentSerializer(instance, context=self.context).data


class CourseSearchSerializer(serializers.Serializer):
    """Query parameters accepted by the course search endpoint."""

    q = serializers.CharField(allow_blank=True, trim_whitespace=False)
    category = serializers.CharField(required=False, allow_blank=True)
    level = serializers.ChoiceField(choices=Level.choices, required=False, allow_blank=True)
    minRating = serializers.FloatField(required=False, min_value=0, max_value=5)
    maxPrice = serializers.FloatField(required=False, min_value=0)
    instructor = serializers.CharField(required=False, allow_blank=True)
    tags = serializers.CharField(required=False, allow_blank=True)

    def validate_tags(self, value: str) -> list[str]:
        return [t.strip() for t in value.split(",") if t.strip()]


class LessonSearchSerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, default="")
    courseId = serializers.IntegerField(required=False)
    type = serializers.ChoiceField(choices=LessonType.choices, required=False)


class LessonSearchResultSerializer(LessonSerializer):
    courseName = serializers.CharField(source="course.title", read_only=True)
    courseSlug = serializers.CharField(source="course.slug", read_only=True)

    class Meta(LessonSerializer.Meta):
        fields = LessonSerializer.Meta.fields + ("courseName", "courseSlug")
        read_only_fields = fields
