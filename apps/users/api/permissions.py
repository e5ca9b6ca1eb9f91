"""Permission classes shared by the reservation APIs."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


class IsRequester(permissions.BasePermission):
    """
    Only general users (role=requester) may manage reservations.

    Approvers and masters act on reservations through the admin API.
    """

    message = "일반 사용자만 접근 가능한 기능입니다."

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return hasattr(user, "is_requester") and user.is_requester()


class IsReservationAdmin(permissions.BasePermission):
    """
    Masters and approvers may browse reservations across users.

    Whether a given approver may approve or reject a specific reservation
    is decided by the approval policy, not here.
    """

    message = "관리자만 접근 가능한 기능입니다."

    def has_permission(self, request, view) -> bool:  # type: ignore
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if getattr(user, "is_superuser", False):
            return True
        return hasattr(user, "is_admin_role") and user.is_admin_role()


class IsOwner(permissions.BasePermission):
    """Object-level permission: the object must belong to the requester."""

    message = "해당 예약에 대한 접근 권한이 없습니다."

    owner_field = "requester_id"

    def get_owner_id(self, view, obj):  # type: ignore
        value = obj
        for attr in getattr(view, "owner_field", self.owner_field).split("."):
            value = getattr(value, attr, None)
        return value

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        return self.get_owner_id(view, obj) == user.id
