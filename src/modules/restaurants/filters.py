import django_filters
from django.db.models import Q

from modules.restaurants.models import MenuItem, Restaurant


class RestaurantFilter(django_filters.FilterSet):
    cuisine = django_filters.CharFilter(field_name="cuisine_type", lookup_expr="iexact")
    is_online = django_filters.BooleanFilter(field_name="is_online")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Restaurant
        fields = ["cuisine", "is_online", "search"]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value)
            | Q(description__icontains=value)
            | Q(cuisine_type__icontains=value)
        )


class MenuItemFilter(django_filters.FilterSet):
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    available = django_filters.BooleanFilter(field_name="is_available")

    class Meta:
        model = MenuItem
        fields = ["category", "available"]
