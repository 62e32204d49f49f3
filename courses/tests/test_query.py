from __future__ import annotations

from decimal import Decimal

import pytest

from accounts.models import Role
from courses import query
from courses.models import Level, LessonType


@pytest.fixture
def catalogue(make_course, make_user):
    grace = make_user("grace@example.com", "Grace Hopper", Role.INSTRUCTOR)
    return {
        "basics": make_course(
            "Observability Basics",
            category="monitoring",
            level=Level.BEGINNER,
            rating=Decimal("4.90"),
            price=Decimal("0"),
            tags=["sentry", "errors"],
        ),
        "advanced": make_course(
            "Advanced Observability",
            category="monitoring",
            level=Level.ADVANCED,
            rating=Decimal("4.20"),
            price=Decimal("99.00"),
            tags=["sentry", "tracing", "performance"],
            is_featured=True,
        ),
        "replay": make_course(
            "Session Replay in Practice",
            description="Watch what users did before an error",
            category="frontend",
            level=Level.INTERMEDIATE,
            rating=Decimal("3.50"),
            price=Decimal("49.99"),
            tags=["replay", "frontend"],
            instructor=grace,
        ),
    }


@pytest.mark.django_db
def test_prefix_match_ranks_above_substring(catalogue):
    results = query.search_courses(q="Adv")
    assert [c.title for c in results] == ["Advanced Observability"]

    results = query.search_courses(q="observability")
    assert [c.title for c in results] == ["Observability Basics", "Advanced Observability"]


@pytest.mark.django_db
def test_text_matches_description_and_tags(catalogue):
    assert [c.title for c in query.search_courses(q="what users did")] == ["Session Replay in Practice"]
    assert [c.title for c in query.search_courses(q="TRACING")] == ["Advanced Observability"]


@pytest.mark.django_db
def test_description_matches_rank_after_title_matches(catalogue, make_course):
    make_course("Frontend Errors", description="Replay sessions", rating=Decimal("1.00"))
    results = query.search_courses(q="replay")
    # "Session Replay in Practice" contains the query in its title; the other only in the description
    assert [c.title for c in results] == ["Session Replay in Practice", "Frontend Errors"]


@pytest.mark.django_db
def test_default_order_is_featured_then_rating(catalogue):
    assert [c.title for c in query.search_courses()] == [
        "Advanced Observability",
        "Observability Basics",
        "Session Replay in Practice",
    ]
    assert len(query.search_courses(q="")) == 3


@pytest.mark.django_db
def test_every_result_satisfies_every_filter(catalogue):
    filters = {"category": "monitoring", "level": Level.ADVANCED, "min_rating": 4.0, "max_price": 100}
    results = query.search_courses(**filters)
    assert results
    for c in results:
        assert c.category == "monitoring"
        assert c.level == Level.ADVANCED
        assert c.rating >= Decimal("4.0")
        assert c.price <= Decimal("100")

    assert [c.title for c in query.search_courses(max_price=50)] == [
        "Observability Basics",
        "Session Replay in Practice",
    ]
    assert [c.title for c in query.search_courses(min_rating=4.5)] == ["Observability Basics"]


@pytest.mark.django_db
def test_tags_require_all_listed_tags(catalogue):
    both = query.search_courses(tags=["sentry", "tracing"])
    assert [c.title for c in both] == ["Advanced Observability"]

    shared = query.search_courses(tags=["sentry"])
    assert {c.title for c in shared} == {"Observability Basics", "Advanced Observability"}

    assert query.search_courses(tags=["sentry", "replay"]) == []


@pytest.mark.django_db
def test_tag_filter_is_exact_not_substring(catalogue):
    # "trac" is part of "tracing" but is not itself a tag
    assert query.search_courses(tags=["trac"]) == []


@pytest.mark.django_db
def test_instructor_filter_matches_name_substring(catalogue):
    assert [c.title for c in query.search_courses(instructor="hopper")] == ["Session Replay in Practice"]


@pytest.mark.django_db
def test_search_lessons_filters(catalogue, make_lesson):
    course = catalogue["replay"]
    make_lesson(course, "Recording sessions", content="Privacy masking")
    make_lesson(course, "Replay quiz", type=LessonType.QUIZ)
    make_lesson(catalogue["basics"], "First error")

    assert [lesson.title for lesson in query.search_lessons(q="masking")] == ["Recording sessions"]
    assert [lesson.title for lesson in query.search_lessons(lesson_type=LessonType.QUIZ)] == ["Replay quiz"]
    assert query.search_lessons(course_id=course.pk).count() == 2


@pytest.mark.django_db
def test_suggestions(catalogue):
    assert query.suggestions("o") == []
    values = query.suggestions("ob")
    assert {"value": "Observability Basics", "type": "course"} in values

    values = query.suggestions("fr")
    assert {"value": "frontend", "type": "category"} in values
    assert {"value": "frontend", "type": "tag"} in values


@pytest.mark.django_db
def test_non_ascii_tags_match_free_text_and_suggestions(make_course):
    make_course("Kitchen Telemetry", description="Dashboards", tags=["café", "éclair"])
    assert [c.title for c in query.search_courses(q="café")] == ["Kitchen Telemetry"]
    assert {"value": "éclair", "type": "tag"} in query.suggestions("éc")
    assert {"value": "éclair", "type": "tag"} in query.suggestions("Éc")


@pytest.mark.django_db
def test_global_search_groups(catalogue, make_lesson, instructor):
    make_lesson(catalogue["basics"], "Observability primer")
    hits = query.global_search("observability")
    assert {c.title for c in hits["courses"]} == {"Observability Basics", "Advanced Observability"}
    assert [lesson.title for lesson in hits["lessons"]] == ["Observability primer"]
    assert [p.user_id for p in hits["instructors"]] == [instructor.pk]

    assert query.global_search("") == {"courses": [], "lessons": [], "instructors": []}
