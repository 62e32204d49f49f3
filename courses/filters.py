"""Exact-match filters for the plain course listing (no free text)."""
from __future__ import annotations

import django_filters

from .models import Course, Level


class CourseFilter(django_filters.FilterSet):
    category = django_filters.CharFilter(field_name="category")
    level = django_filters.ChoiceFilter(field_name="level", choices=Level.choices)
    featured = django_filters.CharFilter(method="filter_featured")

    class Meta:
        model = Course
        fields = ["category", "level"]

    def filter_featured(self, queryset, name, value):
        # Only the literal "true" narrows; any other value is ignored.
        if value == "true":
            return queryset.filter(is_featured=True)
        return queryset
