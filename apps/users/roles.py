"""사용자 역할 정의와 관리자 역할 묶음."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Role(models.TextChoices):
    """사용자 역할.

    * ``MASTER`` manages accounts only and never approves.
    * ``SECOND_APPROVER`` approves both tiers in any region.
    * ``FIRST_APPROVER`` approves the first tier in their own region.
    * ``REQUESTER`` creates and cancels their own reservations.
    """

    MASTER = "master", _("마스터 관리자")
    SECOND_APPROVER = "second_approver", _("2차 승인자")
    FIRST_APPROVER = "first_approver", _("1차 승인자")
    REQUESTER = "requester", _("일반 사용자")


APPROVER_ROLES = frozenset({Role.SECOND_APPROVER, Role.FIRST_APPROVER})
ADMIN_ROLES = frozenset({Role.MASTER, *APPROVER_ROLES})
