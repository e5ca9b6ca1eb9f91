"""Admin registration for reservations."""

from __future__ import annotations

from django.contrib import admin

from .models import PrevisitReservation, Reservation, ReservationLog


class PrevisitInline(admin.StackedInline):
    model = PrevisitReservation
    extra = 0
    max_num = 1


class ReservationLogInline(admin.TabularInline):
    model = ReservationLog
    extra = 0
    can_delete = False
    readonly_fields = ("actor", "from_status", "to_status", "memo", "created_at")


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "order_id",
        "space",
        "requester",
        "status",
        "reservation_from",
        "reservation_to",
        "headcount",
        "created_at",
    )
    list_filter = ("status", "space__region", "space")
    search_fields = ("order_id", "space__name", "requester__email")
    readonly_fields = ("order_id", "status", "created_at", "updated_at")
    inlines = [PrevisitInline, ReservationLogInline]


@admin.register(ReservationLog)
class ReservationLogAdmin(admin.ModelAdmin):
    list_display = ("reservation", "from_status", "to_status", "actor", "created_at")
    list_filter = ("to_status",)
    readonly_fields = ("reservation", "actor", "from_status", "to_status", "memo", "created_at")
