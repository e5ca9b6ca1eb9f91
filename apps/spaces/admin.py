"""Admin registration for spaces."""

from __future__ import annotations

from django.contrib import admin

from .models import Space, SpaceClosedDay, SpaceOperation


class SpaceOperationInline(admin.TabularInline):
    model = SpaceOperation
    extra = 0
    max_num = 7


class SpaceClosedDayInline(admin.TabularInline):
    model = SpaceClosedDay
    extra = 0


@admin.register(Space)
class SpaceAdmin(admin.ModelAdmin):
    list_display = ("name", "region", "capacity", "is_active", "created_at")
    list_filter = ("region", "is_active")
    search_fields = ("name", "location")
    readonly_fields = ("created_at", "updated_at")
    inlines = [SpaceOperationInline, SpaceClosedDayInline]
