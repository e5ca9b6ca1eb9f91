"""User domain models.

회원은 이메일로 로그인하며 네 가지 역할(마스터, 2차 승인자, 1차 승인자,
일반 사용자) 중 하나를 가진다. 1차 승인자는 담당 지역(Region)이 지정되어
있어야 하며, 해당 지역 공간의 예약만 1차 승인할 수 있다.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .roles import ADMIN_ROLES, Role


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("전화번호 형식이 올바르지 않습니다. 공백 없이 숫자만 입력하세요."),
)


class CustomUserManager(BaseUserManager):
    """이메일을 로그인 아이디로 사용하는 사용자 매니저."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("이메일은 필수입니다.")
        email = self.normalize_email(email)

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", Role.REQUESTER)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", Role.MASTER)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        """Strip spaces and dashes so phones are stored uniformly."""
        return phone.replace(" ", "").replace("-", "")


class Region(models.Model):
    """지역. 공간과 1차 승인자가 하나씩 소속된다."""

    name = models.CharField(_("지역명"), max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("지역")
        verbose_name_plural = _("지역")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class CustomUser(AbstractUser):
    """플랫폼 사용자."""

    RoleChoices = Role

    username = models.CharField(
        _("이름"),
        max_length=150,
        blank=True,
        help_text=_("화면과 알림에 표시되는 이름."),
    )
    email = models.EmailField(_("이메일"), unique=True)
    phone = models.CharField(
        _("전화번호"),
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    role = models.CharField(
        _("역할"),
        max_length=20,
        choices=Role.choices,
        default=Role.REQUESTER,
    )
    region = models.ForeignKey(
        Region,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="users",
        help_text=_("1차 승인자의 담당 지역."),
    )
    company_name = models.CharField(_("소속 회사"), max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        verbose_name = _("사용자")
        verbose_name_plural = _("사용자")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role"], name="user_role_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    def clean(self) -> None:
        super().clean()
        if self.role == Role.FIRST_APPROVER and self.region_id is None:
            raise ValidationError({"region": _("1차 승인자는 담당 지역이 필요합니다.")})

    # --- 역할 도우미 -------------------------------------------------------
    def is_requester(self) -> bool:
        return self.role == Role.REQUESTER

    def is_admin_role(self) -> bool:
        return self.role in ADMIN_ROLES


User = CustomUser
