import django_filters

from .models import Booking


class BookingFilter(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=Booking.Status.choices)
    check_in_after = django_filters.IsoDateTimeFilter(field_name="check_in", lookup_expr='gte')
    check_in_before = django_filters.IsoDateTimeFilter(field_name="check_in", lookup_expr='lte')
    role = django_filters.ChoiceFilter(
        choices=(("guest", "guest"), ("host", "host")),
        method='filter_role',
    )

    class Meta:
        model = Booking
        fields = ['status', 'listing_id', 'payment_method', 'cancellation_policy', 'auto_confirmed']

    def filter_role(self, queryset, name, value):
        user = getattr(self.request, 'user', None)
        if user is None or not user.is_authenticated:
            return queryset.none()
        if value == 'host':
            return queryset.filter(host=user)
        return queryset.filter(guest=user)
