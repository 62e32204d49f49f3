"""Course query/filter builder used by the search endpoints.

Every filter is optional; an absent (or empty) value places no constraint
on its field. With a free-text query the results are ranked by title
relevance (prefix match, then substring match, then description/tag
match) with ties broken by rating; without one, featured courses come
first, then higher-rated, then newer.
"""
from __future__ import annotations

import json
from decimal import Decimal
from typing import Iterable

from django.db.models import Case, IntegerField, Q, QuerySet, Value, When

from accounts.models import Role, UserProfile

from .models import Course, Lesson


def course_queryset() -> QuerySet[Course]:
    return Course.objects.select_related("instructor__profile")


def stored_json_text(value: str) -> str:
    """`value` as it appears inside the stored JSON (non-ASCII is \\u-escaped)."""
    return json.dumps(value)[1:-1]


def text_match(q: str) -> Q:
    """Case-insensitive match on title, description or the serialized tag list."""
    return (
        Q(title__icontains=q)
        | Q(description__icontains=q)
        | Q(tags__icontains=q)
        | Q(tags__icontains=stored_json_text(q))
    )


def relevance(q: str) -> Case:
    return Case(
        When(title__istartswith=q, then=Value(1)),
        When(title__icontains=q, then=Value(2)),
        default=Value(3),
        output_field=IntegerField(),
    )


def search_courses(
    *,
    q: str | None = None,
    category: str | None = None,
    level: str | None = None,
    min_rating: Decimal | float | None = None,
    max_price: Decimal | float | None = None,
    instructor: str | None = None,
    tags: Iterable[str] | None = None,
) -> list[Course]:
    """Return the courses matching every supplied filter, ranked."""
    qs = course_queryset()
    if q:
        qs = qs.filter(text_match(q))
    if category:
        qs = qs.filter(category=category)
    if level:
        qs = qs.filter(level=level)
    if min_rating is not None:
        qs = qs.filter(rating__gte=min_rating)
    if max_price is not None:
        qs = qs.filter(price__lte=max_price)
    if instructor:
        qs = qs.filter(instructor__profile__name__icontains=instructor)

    wanted = [t for t in (tags or []) if t]
    for tag in wanted:
        # Narrow in SQL on the quoted element; exact membership is checked below.
        qs = qs.filter(tags__icontains=json.dumps(tag))

    if q:
        qs = qs.annotate(relevance=relevance(q)).order_by("relevance", "-rating")
    else:
        qs = qs.order_by("-is_featured", "-rating", "-created_at")

    results = list(qs)
    if wanted:
        required = set(wanted)
        results = [c for c in results if required.issubset(c.tags or [])]
    return results


def search_lessons(*, q: str | None = None, course_id=None, lesson_type: str | None = None) -> QuerySet[Lesson]:
    qs = Lesson.objects.select_related("course")
    if q:
        qs = qs.filter(Q(title__icontains=q) | Q(description__icontains=q) | Q(content__icontains=q))
    if course_id is not None:
        qs = qs.filter(course_id=course_id)
    if lesson_type:
        qs = qs.filter(type=lesson_type)
    return qs.order_by("order", "course_id")


def suggestions(prefix: str) -> list[dict[str, str]]:
    """Autocomplete values: up to 5 course titles, 3 categories and 3 tags."""
    if not prefix or len(prefix) < 2:
        return []
    lowered = prefix.lower()
    titles = Course.objects.filter(title__istartswith=prefix).values_list("title", flat=True)[:5]
    categories = (
        Course.objects.filter(category__istartswith=prefix)
        .order_by("category")
        .values_list("category", flat=True)
        .distinct()[:3]
    )
    tags: list[str] = []
    # Case folding of non-ASCII prefixes happens here, not in SQL.
    for course_tags in Course.objects.values_list("tags", flat=True):
        for tag in course_tags or []:
            if isinstance(tag, str) and tag.lower().startswith(lowered) and tag not in tags:
                tags.append(tag)
    return (
        [{"value": t, "type": "course"} for t in titles]
        + [{"value": c, "type": "category"} for c in categories]
        + [{"value": t, "type": "tag"} for t in sorted(tags)[:3]]
    )


def global_search(q: str) -> dict[str, list]:
    """Search courses (10), lessons (10) and instructors (5) by a free-text query."""
    if not q:
        return {"courses": [], "lessons": [], "instructors": []}
    course_hits = list(
        Course.objects.filter(Q(title__icontains=q) | Q(description__icontains=q)).order_by("-rating")[:10]
    )
    lesson_hits = list(
        Lesson.objects.filter(Q(title__icontains=q) | Q(description__icontains=q)).order_by("course_id", "order")[:10]
    )
    instructor_hits = list(
        UserProfile.objects.select_related("user")
        .filter(role=Role.INSTRUCTOR)
        .filter(Q(name__icontains=q) | Q(bio__icontains=q))
        .order_by("name")[:5]
    )
    return {"courses": course_hits, "lessons": lesson_hits, "instructors": instructor_hits}
