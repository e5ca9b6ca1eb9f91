"""Serializers for the reservation API."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import PrevisitReservation, Reservation


class AvailableDatesQuerySerializer(serializers.Serializer):
    space_id = serializers.IntegerField(min_value=1)
    year = serializers.IntegerField(min_value=1, max_value=9999)
    month = serializers.IntegerField(min_value=1, max_value=12)


class AvailableTimesQuerySerializer(AvailableDatesQuerySerializer):
    day = serializers.IntegerField(min_value=1, max_value=31)


class PrevisitSerializer(serializers.ModelSerializer):
    """사전 답사 조회."""

    reservation_id = serializers.ReadOnlyField()

    class Meta:
        model = PrevisitReservation
        fields = ["id", "reservation_id", "previsit_from", "previsit_to", "created_at"]
        read_only_fields = fields


class PrevisitCreateSerializer(serializers.Serializer):
    reservation_id = serializers.IntegerField(min_value=1)
    previsit_from = serializers.DateTimeField()
    previsit_to = serializers.DateTimeField()


class PrevisitUpdateSerializer(serializers.Serializer):
    previsit_from = serializers.DateTimeField()
    previsit_to = serializers.DateTimeField()


class ReservationWriteSerializer(serializers.Serializer):
    """예약 신청 및 수정 입력값."""

    space_id = serializers.IntegerField(min_value=1)
    headcount = serializers.IntegerField(min_value=1)
    reservation_from = serializers.DateTimeField()
    reservation_to = serializers.DateTimeField()
    purpose = serializers.CharField(max_length=2000)
    attachments = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        default=list,
    )

    def validate(self, attrs):  # type: ignore
        if attrs["reservation_from"] >= attrs["reservation_to"]:
            raise serializers.ValidationError("예약 시작 시간은 종료 시간보다 이전이어야 합니다.")
        return attrs


class ReservationSerializer(serializers.ModelSerializer):
    """예약 상세."""

    space_id = serializers.ReadOnlyField(source="space.id")
    space_name = serializers.ReadOnlyField(source="space.name")
    requester_id = serializers.ReadOnlyField(source="requester.id")
    status = serializers.ReadOnlyField(source="status_label")
    status_code = serializers.ReadOnlyField(source="status")
    previsit = serializers.SerializerMethodField()

    class Meta:
        model = Reservation
        fields = [
            "id",
            "order_id",
            "space_id",
            "space_name",
            "requester_id",
            "reservation_from",
            "reservation_to",
            "headcount",
            "purpose",
            "attachments",
            "status",
            "status_code",
            "previsit",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_previsit(self, obj: Reservation):  # type: ignore
        previsit = getattr(obj, "previsit", None)
        if previsit is None:
            return None
        return PrevisitSerializer(previsit).data


class RejectSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(allow_blank=True, max_length=2000)


class AdminReservationSerializer(serializers.Serializer):
    """Row of the admin list; names and flags are resolved by the view."""

    id = serializers.IntegerField()
    order_id = serializers.CharField()
    space_id = serializers.IntegerField()
    space_name = serializers.CharField(allow_null=True)
    requester_id = serializers.IntegerField()
    requester_name = serializers.CharField(allow_null=True)
    reservation_from = serializers.DateTimeField()
    reservation_to = serializers.DateTimeField()
    headcount = serializers.IntegerField()
    purpose = serializers.CharField()
    status = serializers.CharField()
    status_code = serializers.CharField()
    previsit = PrevisitSerializer(allow_null=True)
    created_at = serializers.DateTimeField()
    is_emergency = serializers.BooleanField()
    is_approvable = serializers.BooleanField()
    is_rejectable = serializers.BooleanField()
