"""
Authentication models for the storefront.

Defines the custom User (email login, single role) and the AuditLog used to
record security-relevant order and review events.
"""

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.validators import RegexValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class StorefrontUserManager(UserManager):
    """User manager that derives the username from the email when omitted."""

    def _create_user(self, username, email, password, **extra_fields):
        username = username or (email or "").split("@")[0]
        return super()._create_user(username, email, password, **extra_fields)

    def create_superuser(self, username=None, email=None, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """
    Custom application user model.

    Uses email as the login identifier. Authorization is a single role:
    ``user`` for shoppers, ``admin`` for back-office staff. Superusers are
    always treated as admins.
    """

    class Role(models.TextChoices):
        USER = "user", _("User")
        ADMIN = "admin", _("Admin")

    username = models.CharField(
        max_length=50,
        unique=True,
        validators=[
            RegexValidator(
                regex=r"^[A-Za-z0-9_.+-]{1,50}$",
                message="Username may include letters, numbers, underscores, periods, plus signs or hyphens.",
            )
        ],
    )
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    role = models.CharField(
        max_length=10,
        choices=Role.choices,
        default=Role.USER,
        db_index=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    objects = StorefrontUserManager()

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"{self.email} ({self.name or self.username})"

    @property
    def is_admin(self) -> bool:
        return self.is_superuser or self.role == self.Role.ADMIN

    def has_role(self, *role_names: str) -> bool:
        """
        Check whether the user holds any of the supplied roles.
        Admins and superusers always return True.
        """
        if self.is_admin:
            return True
        return self.role in role_names


class AuditLog(models.Model):
    """
    Audit record for order and review mutations.

    Rows are written by ``authentication.audit.log_action`` for both
    successful and rejected operations, and are never deleted.
    """

    class Status(models.TextChoices):
        SUCCESS = "SUCCESS", _("Success")
        FAILURE = "FAILURE", _("Failure")
        BLOCKED = "BLOCKED", _("Blocked")

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
        help_text="User who performed the action (null for guests and cron)",
    )
    action = models.CharField(max_length=100, db_index=True)
    resource_type = models.CharField(max_length=100, db_index=True)
    resource_id = models.CharField(max_length=100, null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    request_path = models.CharField(max_length=500, blank=True)
    request_method = models.CharField(max_length=10, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SUCCESS,
        db_index=True,
    )
    metadata = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["user", "timestamp"], name="audit_user_ts_idx"),
            models.Index(fields=["action", "status", "timestamp"], name="audit_action_status_ts_idx"),
            models.Index(fields=["resource_type", "resource_id"], name="audit_resource_idx"),
        ]
        verbose_name = "Audit Log"
        verbose_name_plural = "Audit Logs"

    def __str__(self):
        user_str = self.user.email if self.user else "Anonymous"
        return f"{self.action} on {self.resource_type} by {user_str} at {self.timestamp}"
