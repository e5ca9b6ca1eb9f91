"""Integration tests for the approval workflow and the admin listing."""

from __future__ import annotations

from unittest import mock

from django.db import connection
from django.test.utils import CaptureQueriesContext
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.reservations.application import event_handlers
from apps.reservations.models import PrevisitReservation, Reservation, ReservationLog
from apps.users.models import Region, User

from .helpers import TUESDAY, at, make_reservation, make_space, make_user


class ApprovalAPITests(APITestCase):
    """1차/2차 승인과 반려."""

    def setUp(self) -> None:
        self.seoul = Region.objects.create(name="서울")
        self.busan = Region.objects.create(name="부산")
        self.space = make_space(self.seoul)
        self.requester = make_user("requester@example.com", User.RoleChoices.REQUESTER)
        self.second_approver = make_user("second@example.com", User.RoleChoices.SECOND_APPROVER)
        self.first_approver = make_user("first@example.com", User.RoleChoices.FIRST_APPROVER, region=self.seoul)
        self.foreign_approver = make_user("far@example.com", User.RoleChoices.FIRST_APPROVER, region=self.busan)
        self.reservation = make_reservation(self.space, self.requester, at(TUESDAY, 11), at(TUESDAY, 13))

    def _approve(self, tier: str, user: User, reservation: Reservation | None = None):
        self.client.force_authenticate(user)
        reservation = reservation or self.reservation
        return self.client.post(reverse(f"reservation-admin-approve-{tier}", args=[reservation.id]))

    def _reject(self, user: User, reason: str):
        self.client.force_authenticate(user)
        return self.client.post(
            reverse("reservation-admin-reject", args=[self.reservation.id]),
            {"rejection_reason": reason},
            format="json",
        )

    def test_two_tier_approval(self) -> None:
        first = self._approve("first", self.first_approver)

        self.assertEqual(first.status_code, status.HTTP_200_OK, first.data)
        self.assertEqual(first.data["from_status"], "1차 승인 대기")
        self.assertEqual(first.data["to_status"], "2차 승인 대기")
        self.assertEqual(first.data["message"], "1차 승인 완료")
        self.assertIn("approved_at", first.data)

        second = self._approve("second", self.second_approver)

        self.assertEqual(second.status_code, status.HTTP_200_OK, second.data)
        self.assertEqual(second.data["to_status"], "최종 승인 완료")
        self.assertEqual(second.data["message"], "2차 승인 완료")
        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.status, Reservation.Status.FINAL_APPROVED)
        self.assertEqual(
            list(ReservationLog.objects.order_by("id").values_list("to_status", "actor_id")),
            [
                (Reservation.Status.SECOND_PENDING, self.first_approver.id),
                (Reservation.Status.FINAL_APPROVED, self.second_approver.id),
            ],
        )

    def test_second_approver_can_skip_first_tier(self) -> None:
        response = self._approve("second", self.second_approver)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["from_status"], "1차 승인 대기")
        self.assertEqual(response.data["to_status"], "최종 승인 완료")

    def test_approving_final_approved_fails_precondition_without_mutation(self) -> None:
        self.reservation.status = Reservation.Status.FINAL_APPROVED
        self.reservation.save(update_fields=["status"])
        updated_at = Reservation.objects.get(pk=self.reservation.pk).updated_at

        response = self._approve("second", self.second_approver)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(
            response.data["message"],
            "2차 승인 불가(이미 처리 완료된 대상인지 확인하세요): 최종 승인 완료",
        )
        reservation = Reservation.objects.get(pk=self.reservation.pk)
        self.assertEqual(reservation.status, Reservation.Status.FINAL_APPROVED)
        self.assertEqual(reservation.updated_at, updated_at)
        self.assertFalse(ReservationLog.objects.exists())

    def test_first_approver_of_other_region_is_forbidden(self) -> None:
        response = self._approve("first", self.foreign_approver)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)
        self.assertEqual(response.data["message"], "승인 권한이 없습니다.")
        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.status, Reservation.Status.FIRST_PENDING)

    def test_first_approver_cannot_give_final_approval(self) -> None:
        response = self._approve("second", self.first_approver)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)

    def test_master_has_no_approval_rights(self) -> None:
        master = make_user("master@example.com", User.RoleChoices.MASTER)

        response = self._approve("first", master)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)

    def test_requester_cannot_reach_admin_endpoints(self) -> None:
        response = self._approve("first", self.requester)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)

    def test_missing_reservation_is_not_found(self) -> None:
        self.client.force_authenticate(self.second_approver)

        response = self.client.post(reverse("reservation-admin-approve-first", args=[9999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)

    def test_reject_records_reason(self) -> None:
        response = self._reject(self.first_approver, "수용 인원 초과")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["to_status"], "반려")
        self.assertEqual(response.data["rejection_reason"], "수용 인원 초과")
        self.assertIn("rejected_at", response.data)

        self.client.force_authenticate(self.requester)
        reason = self.client.get(reverse("reservation-rejection-reason", args=[self.reservation.id]))
        self.assertEqual(reason.data["rejection_reason"], "수용 인원 초과")

    def test_reject_requires_reason(self) -> None:
        response = self._reject(self.second_approver, "   ")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["message"], "반려 사유를 입력해주세요.")

    def test_first_approver_cannot_reject_second_tier(self) -> None:
        self.reservation.status = Reservation.Status.SECOND_PENDING
        self.reservation.save(update_fields=["status"])

        response = self._reject(self.first_approver, "일정 변경")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)

    def test_rejected_reservation_can_be_edited_and_approved_again(self) -> None:
        self._reject(self.second_approver, "시간 조정 필요")

        self.client.force_authenticate(self.requester)
        update = self.client.put(
            reverse("reservation-detail", args=[self.reservation.id]),
            {
                "space_id": self.space.id,
                "headcount": 4,
                "reservation_from": at(TUESDAY, 14).isoformat(),
                "reservation_to": at(TUESDAY, 15).isoformat(),
                "purpose": "팀 워크숍",
            },
            format="json",
        )
        self.assertEqual(update.status_code, status.HTTP_200_OK, update.data)

        response = self._approve("first", self.first_approver)
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

    def test_status_change_is_published_after_commit(self) -> None:
        with mock.patch.object(event_handlers, "logger") as logger:
            with self.captureOnCommitCallbacks(execute=True):
                self._approve("first", self.first_approver)

        logger.info.assert_called_once()
        event_name = logger.info.call_args.args[0]
        self.assertEqual(event_name, "reservation.status_changed")
        self.assertEqual(logger.info.call_args.kwargs["to_status"], Reservation.Status.SECOND_PENDING)


class AdminListAPITests(APITestCase):
    """관리자 예약 목록."""

    def setUp(self) -> None:
        self.seoul = Region.objects.create(name="서울")
        self.busan = Region.objects.create(name="부산")
        self.seoul_space = make_space(self.seoul, name="서울 회의실")
        self.busan_space = make_space(self.busan, name="부산 회의실")
        self.requester = make_user("requester@example.com", User.RoleChoices.REQUESTER)
        self.first_approver = make_user("first@example.com", User.RoleChoices.FIRST_APPROVER, region=self.seoul)
        self.url = reverse("reservation-admin-list")

        self.seoul_booking = make_reservation(self.seoul_space, self.requester, at(TUESDAY, 9), at(TUESDAY, 10))
        self.busan_booking = make_reservation(self.busan_space, self.requester, at(TUESDAY, 9), at(TUESDAY, 10))
        PrevisitReservation.objects.create(
            reservation=self.seoul_booking,
            previsit_from=at(TUESDAY, 16),
            previsit_to=at(TUESDAY, 17),
        )

    def test_rows_carry_names_and_flags(self) -> None:
        self.client.force_authenticate(self.first_approver)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["count"], 2)
        rows = {row["id"]: row for row in response.data["results"]}

        seoul = rows[self.seoul_booking.id]
        self.assertEqual(seoul["space_name"], "서울 회의실")
        self.assertEqual(seoul["requester_name"], "requester")
        self.assertEqual(seoul["status"], "1차 승인 대기")
        self.assertEqual(seoul["status_code"], Reservation.Status.FIRST_PENDING)
        self.assertTrue(seoul["is_approvable"])
        self.assertTrue(seoul["is_rejectable"])
        self.assertEqual(seoul["previsit"]["reservation_id"], self.seoul_booking.id)
        # Submitted today; the event is years away.
        self.assertFalse(seoul["is_emergency"])

        busan = rows[self.busan_booking.id]
        self.assertFalse(busan["is_approvable"])
        self.assertFalse(busan["is_rejectable"])
        self.assertIsNone(busan["previsit"])

    def test_list_filters_by_status(self) -> None:
        self.busan_booking.status = Reservation.Status.FINAL_APPROVED
        self.busan_booking.save(update_fields=["status"])
        self.client.force_authenticate(self.first_approver)

        response = self.client.get(self.url, {"status": Reservation.Status.FINAL_APPROVED})

        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["id"], self.busan_booking.id)

    def test_names_are_batch_loaded(self) -> None:
        self.client.force_authenticate(self.first_approver)
        with CaptureQueriesContext(connection) as few:
            self.client.get(self.url)

        for hour in range(11, 17):
            make_reservation(self.seoul_space, self.requester, at(TUESDAY, hour), at(TUESDAY, hour, 30))
        with CaptureQueriesContext(connection) as many:
            response = self.client.get(self.url)

        self.assertEqual(response.data["count"], 8)
        self.assertEqual(len(many.captured_queries), len(few.captured_queries))

    def test_requester_is_forbidden(self) -> None:
        self.client.force_authenticate(self.requester)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, response.data)
        self.assertEqual(response.data["status"], 403)
