from django.contrib import admin

from .models import Category, Certificate, Course, Enrollment, Lesson, LessonProgress
from .models_reviews import Review


class LessonInline(admin.TabularInline):
    model = Lesson
    fields = ("order", "title", "type", "is_free")
    extra = 0


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("title", "instructor", "category", "level", "status", "rating", "enrollment_count", "is_featured")
    list_filter = ("level", "status", "is_featured", "category")
    search_fields = ("title", "description", "instructor__username", "instructor__profile__name")
    readonly_fields = ("enrollment_count", "created_at", "updated_at")
    inlines = [LessonInline]


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "order")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("course", "user", "progress", "enrolled_at", "completed_at")
    search_fields = ("course__title", "user__username")


@admin.register(LessonProgress)
class LessonProgressAdmin(admin.ModelAdmin):
    list_display = ("lesson", "user", "completed_at", "time_spent")


@admin.register(Certificate)
class CertificateAdmin(admin.ModelAdmin):
    list_display = ("course", "user", "issued_at", "expires_at")


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("course", "user", "rating", "created_at")
    list_filter = ("rating",)
