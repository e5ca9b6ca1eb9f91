import django_filters

from .domain.status import STATUS_GROUPS, ReservationStatus
from .models import Reservation


class ReservationFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=ReservationStatus.choices)
    # Requester-facing tabs: in_progress, approved, completed, canceled.
    group = django_filters.ChoiceFilter(
        choices=[(name, name) for name in STATUS_GROUPS],
        method="filter_group",
    )
    date_from = django_filters.DateTimeFilter(field_name="reservation_to", lookup_expr='gt')
    date_to = django_filters.DateTimeFilter(field_name="reservation_from", lookup_expr='lt')

    class Meta:
        model = Reservation
        fields = {
            'space': ['exact'],
        }

    def filter_group(self, queryset, name, value):
        return queryset.filter(status__in=STATUS_GROUPS[value])
