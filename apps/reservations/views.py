"""API views for the reservation domain."""

from __future__ import annotations

from rest_framework import generics, mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.api.permissions import IsOwner, IsRequester, IsReservationAdmin
from shared.application.message_bus import message_bus

from .application.command_handlers import (
    ApproveReservationCommand,
    CancelReservationCommand,
    CreatePrevisitCommand,
    CreateReservationCommand,
    DeletePrevisitCommand,
    DeleteReservationCommand,
    RejectReservationCommand,
    TransitionResult,
    UpdatePrevisitCommand,
    UpdateReservationCommand,
    get_rejection_reason,
)
from .domain.approval import ApprovalAction, is_approvable_for, is_rejectable_for
from .domain.emergency import is_emergency
from .filters import ReservationFilter
from .models import PrevisitReservation, Reservation
from .repositories import fetch_previsits, fetch_space_names, fetch_space_regions, fetch_user_names
from .schedule import get_available_days, get_available_times_for, get_fully_available_days
from .serializers import (
    AdminReservationSerializer,
    AvailableDatesQuerySerializer,
    AvailableTimesQuerySerializer,
    PrevisitCreateSerializer,
    PrevisitSerializer,
    PrevisitUpdateSerializer,
    RejectSerializer,
    ReservationSerializer,
    ReservationWriteSerializer,
)


def transition_body(result: TransitionResult, timestamp_field: str) -> dict:
    body = {
        "reservation_id": result.reservation_id,
        "from_status": result.from_label,
        "to_status": result.to_label,
        timestamp_field: result.changed_at,
        "message": result.message,
    }
    if result.rejection_reason is not None:
        body["rejection_reason"] = result.rejection_reason
    return body


# ===== Availability =====

class AvailableDatesView(APIView):
    """GET /reservations/available-dates/?space_id&year&month"""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):  # type: ignore
        query = AvailableDatesQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        days = get_available_days(**query.validated_data)
        return Response({"available_days": days})


class FullyAvailableDatesView(APIView):
    """GET /reservations/fully-available-dates/?space_id&year&month

    Days on which nothing is booked yet, for booking a whole day.
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):  # type: ignore
        query = AvailableDatesQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        days = get_fully_available_days(**query.validated_data)
        return Response({"available_days": days})


class AvailableTimesView(APIView):
    """GET /reservations/available-times/?space_id&year&month&day"""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):  # type: ignore
        query = AvailableTimesQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        slots = get_available_times_for(**query.validated_data)
        return Response({"available_times": [slot.to_dict() for slot in slots]})


# ===== Requester =====

class ReservationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Requester's own reservations: create, edit after rejection, cancel, delete."""

    queryset = Reservation.objects.select_related("space", "requester", "previsit").all()
    serializer_class = ReservationSerializer
    permission_classes = [permissions.IsAuthenticated, IsRequester, IsOwner]
    filterset_class = ReservationFilter

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.action == "list":
            return qs.filter(requester=self.request.user)
        return qs

    def _read(self, reservation_id: int, status_code=status.HTTP_200_OK) -> Response:
        reservation = self.get_queryset().get(pk=reservation_id)
        return Response(ReservationSerializer(reservation).data, status=status_code)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ReservationWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = message_bus.handle_command(
            CreateReservationCommand(requester_id=request.user.id, **serializer.validated_data)
        )
        return self._read(reservation.pk, status.HTTP_201_CREATED)

    def update(self, request, pk=None, *args, **kwargs):  # type: ignore
        serializer = ReservationWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = message_bus.handle_command(
            UpdateReservationCommand(
                requester_id=request.user.id,
                reservation_id=int(pk),
                **serializer.validated_data,
            )
        )
        return self._read(reservation.pk)

    def destroy(self, request, pk=None, *args, **kwargs):  # type: ignore
        message_bus.handle_command(DeleteReservationCommand(requester_id=request.user.id, reservation_id=int(pk)))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        result = message_bus.handle_command(
            CancelReservationCommand(requester_id=request.user.id, reservation_id=int(pk))
        )
        return Response(transition_body(result, "canceled_at"))

    @action(detail=True, methods=["get"], url_path="rejection-reason")
    def rejection_reason(self, request, pk=None):  # type: ignore
        reason = get_rejection_reason(request.user.id, int(pk))
        return Response({"reservation_id": int(pk), "rejection_reason": reason})


class PrevisitViewSet(
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Previsit of a reservation, addressed by the reservation id."""

    queryset = PrevisitReservation.objects.select_related("reservation").all()
    serializer_class = PrevisitSerializer
    permission_classes = [permissions.IsAuthenticated, IsRequester, IsOwner]
    lookup_field = "reservation_id"
    lookup_url_kwarg = "reservation_id"
    owner_field = "reservation.requester_id"

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = PrevisitCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        previsit = message_bus.handle_command(
            CreatePrevisitCommand(requester_id=request.user.id, **serializer.validated_data)
        )
        return Response(PrevisitSerializer(previsit).data, status=status.HTTP_201_CREATED)

    def update(self, request, reservation_id=None, *args, **kwargs):  # type: ignore
        serializer = PrevisitUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        previsit = message_bus.handle_command(
            UpdatePrevisitCommand(
                requester_id=request.user.id,
                reservation_id=int(reservation_id),
                **serializer.validated_data,
            )
        )
        return Response(PrevisitSerializer(previsit).data)

    def destroy(self, request, reservation_id=None, *args, **kwargs):  # type: ignore
        message_bus.handle_command(
            DeletePrevisitCommand(requester_id=request.user.id, reservation_id=int(reservation_id))
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# ===== Admin =====

class ReservationAdminListView(generics.ListAPIView):
    """
    Reservations across users for masters and approvers.

    Each row carries what the caller may do with it (``is_approvable``,
    ``is_rejectable``) and whether it needs urgent attention.
    """

    queryset = Reservation.objects.all()
    serializer_class = AdminReservationSerializer
    permission_classes = [permissions.IsAuthenticated, IsReservationAdmin]
    filterset_class = ReservationFilter

    def list(self, request, *args, **kwargs):  # type: ignore
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        rows = self.build_rows(page if page is not None else list(queryset))
        data = self.get_serializer(rows, many=True).data
        if page is not None:
            return self.get_paginated_response(data)
        return Response(data)

    def build_rows(self, reservations: list[Reservation]) -> list[dict]:
        user = self.request.user
        space_names = fetch_space_names(r.space_id for r in reservations)
        space_regions = fetch_space_regions(r.space_id for r in reservations)
        requester_names = fetch_user_names(r.requester_id for r in reservations)
        previsits = fetch_previsits(r.pk for r in reservations)

        rows = []
        for reservation in reservations:
            context = {
                "actor_region_id": user.region_id,
                "space_region_id": space_regions.get(reservation.space_id),
            }
            rows.append(
                {
                    "id": reservation.pk,
                    "order_id": reservation.order_id,
                    "space_id": reservation.space_id,
                    "space_name": space_names.get(reservation.space_id),
                    "requester_id": reservation.requester_id,
                    "requester_name": requester_names.get(reservation.requester_id),
                    "reservation_from": reservation.reservation_from,
                    "reservation_to": reservation.reservation_to,
                    "headcount": reservation.headcount,
                    "purpose": reservation.purpose,
                    "status": reservation.status_label,
                    "status_code": reservation.status,
                    "previsit": previsits.get(reservation.pk),
                    "created_at": reservation.created_at,
                    "is_emergency": is_emergency(reservation),
                    "is_approvable": is_approvable_for(user.role, reservation.status, **context),
                    "is_rejectable": is_rejectable_for(user.role, reservation.status, **context),
                }
            )
        return rows


class ApproveReservationView(APIView):
    """POST /reservations-admin/approve/{first|second}/{id}/"""

    permission_classes = [permissions.IsAuthenticated, IsReservationAdmin]
    approval_action = ApprovalAction.APPROVE_FIRST

    def post(self, request, pk: int):  # type: ignore
        result = message_bus.handle_command(
            ApproveReservationCommand(
                actor_id=request.user.id,
                reservation_id=pk,
                action=self.approval_action,
            )
        )
        return Response(transition_body(result, "approved_at"))


class RejectReservationView(APIView):
    """POST /reservations-admin/reject/{id}/ with ``{"rejection_reason": ...}``"""

    permission_classes = [permissions.IsAuthenticated, IsReservationAdmin]

    def post(self, request, pk: int):  # type: ignore
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = message_bus.handle_command(
            RejectReservationCommand(
                actor_id=request.user.id,
                reservation_id=pk,
                reason=serializer.validated_data["rejection_reason"],
            )
        )
        return Response(transition_body(result, "rejected_at"))
