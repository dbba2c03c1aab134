import django_filters as df
from django.db.models import Q
from django.utils import timezone

from requests_core.choices import ACTIVE_STATUSES, Priority
from requests_core.models import SampleRequest


class SampleRequestFilter(df.FilterSet):
    status = df.CharFilter(method="filter_status")
    priority = df.ChoiceFilter(choices=Priority.choices)
    overdue = df.BooleanFilter(method="filter_overdue")
    search = df.CharFilter(method="filter_search")
    required_by = df.DateFromToRangeFilter(field_name="required_by__date")

    class Meta:
        model = SampleRequest
        fields = ["status", "priority", "pickup_responsibility", "overdue", "search", "required_by"]

    def filter_status(self, queryset, name, value):
        statuses = [s.strip().lower() for s in (value or "").split(",") if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)

    def filter_overdue(self, queryset, name, value):
        if value is None:
            return queryset
        now = timezone.now()
        overdue = Q(status__in=ACTIVE_STATUSES, required_by__lt=now)
        return queryset.filter(overdue) if value else queryset.exclude(overdue)

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(request_number__icontains=value)
            | Q(client_contact_name__icontains=value)
            | Q(firm_name__icontains=value)
            | Q(site_location__icontains=value)
        )
