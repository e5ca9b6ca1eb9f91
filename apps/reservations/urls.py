"""URL routing for the reservation domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .domain.approval import ApprovalAction
from .views import (
    ApproveReservationView,
    AvailableDatesView,
    AvailableTimesView,
    FullyAvailableDatesView,
    PrevisitViewSet,
    RejectReservationView,
    ReservationAdminListView,
    ReservationViewSet,
)

router = DefaultRouter()
router.register(r"reservations", ReservationViewSet, basename="reservation")
router.register(r"previsits", PrevisitViewSet, basename="previsit")

urlpatterns = [
    path("reservations/available-dates/", AvailableDatesView.as_view(), name="reservation-available-dates"),
    path("reservations/available-times/", AvailableTimesView.as_view(), name="reservation-available-times"),
    path(
        "reservations/fully-available-dates/",
        FullyAvailableDatesView.as_view(),
        name="reservation-fully-available-dates",
    ),
    path("reservations-admin/", ReservationAdminListView.as_view(), name="reservation-admin-list"),
    path(
        "reservations-admin/approve/first/<int:pk>/",
        ApproveReservationView.as_view(approval_action=ApprovalAction.APPROVE_FIRST),
        name="reservation-admin-approve-first",
    ),
    path(
        "reservations-admin/approve/second/<int:pk>/",
        ApproveReservationView.as_view(approval_action=ApprovalAction.APPROVE_SECOND),
        name="reservation-admin-approve-second",
    ),
    path(
        "reservations-admin/reject/<int:pk>/",
        RejectReservationView.as_view(),
        name="reservation-admin-reject",
    ),
    path("", include(router.urls)),
]
