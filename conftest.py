import itertools
import logging

import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient

from accounts.models import Role
from courses import services
from courses.models import Course, Level, LessonType
from courses.utils import slug_from_title


@pytest.fixture(autouse=True)
def silence_expected_error_logs():
    """Reduce noise from expected 4xx/5xx in passing tests.

    Many tests deliberately hit 400/404/500 paths. Raise the request and
    API loggers to CRITICAL while a test runs.
    """
    loggers = [logging.getLogger(name) for name in ("django.request", "academy.request", "api.errors")]
    old = [lg.level for lg in loggers]
    for lg in loggers:
        lg.setLevel(logging.CRITICAL)
    try:
        yield
    finally:
        for lg, level in zip(loggers, old):
            lg.setLevel(level)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    def factory(email="sam@example.com", name="Sam Student", role=Role.STUDENT, bio=""):
        user = User.objects.create_user(username=email, email=email)
        profile = user.profile
        profile.name = name
        profile.role = role
        profile.bio = bio
        profile.save()
        return user

    return factory


@pytest.fixture
def student(make_user):
    return make_user()


@pytest.fixture
def instructor(make_user):
    return make_user("ada@example.com", "Ada Lovelace", Role.INSTRUCTOR, bio="Tracing and observability lead")


@pytest.fixture
def make_course(instructor):
    counter = itertools.count(1)

    def factory(title="Error Monitoring 101", **fields):
        fields.setdefault("slug", f"{slug_from_title(title)}-{next(counter)}")
        fields.setdefault("description", f"All about {title}")
        fields.setdefault("category", "monitoring")
        fields.setdefault("level", Level.BEGINNER)
        fields.setdefault("instructor", instructor)
        return Course.objects.create(title=title, **fields)

    return factory


@pytest.fixture
def make_lesson():
    def factory(course, title="Lesson", **fields):
        fields.setdefault("type", LessonType.TEXT)
        return services.create_lesson(course, title=title, **fields)

    return factory
