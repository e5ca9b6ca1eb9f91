"""Error body rendering of the API exception handler."""

from __future__ import annotations

from django.http import Http404
from rest_framework import serializers, status
from rest_framework.permissions import AllowAny
from rest_framework.test import APIRequestFactory
from rest_framework.views import APIView

from shared.api.exceptions import Forbidden, GENERIC_ERROR_MESSAGE, PreconditionFailed, ReservationConflict

factory = APIRequestFactory()


def view_raising(exc: Exception):
    class RaisingView(APIView):
        authentication_classes: list = []
        permission_classes = [AllowAny]

        def get(self, request):  # type: ignore
            raise exc

    return RaisingView.as_view()


def call(exc: Exception):
    response = view_raising(exc)(factory.get("/"))
    response.render()
    return response


def test_domain_errors_keep_status_and_message():
    response = call(ReservationConflict())

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.data["status"] == 409
    assert response.data["message"] == ReservationConflict.default_detail
    assert set(response.data) == {"message", "status", "timestamp"}


def test_precondition_is_a_bad_request():
    response = call(PreconditionFailed("이미 처리된 예약입니다."))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["message"] == "이미 처리된 예약입니다."


def test_validation_errors_are_flattened():
    response = call(serializers.ValidationError({"month": ["범위를 벗어났습니다."]}))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.data["message"] == "month: 범위를 벗어났습니다."


def test_django_errors_are_mapped():
    assert call(Http404()).status_code == status.HTTP_404_NOT_FOUND
    assert call(Forbidden()).data["message"] == Forbidden.default_detail


def test_unexpected_errors_become_generic_500():
    response = call(RuntimeError("boom"))

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.data["message"] == GENERIC_ERROR_MESSAGE
    assert response.data["status"] == 500
    assert "boom" not in response.data["message"]
