"""
Review models for the storefront.

This module defines Review and ReviewHelpfulVote:
- Rating validation (1-5 stars)
- One review per user per product (unique constraint)
- Moderation workflow: pending -> approved / rejected
- Helpful votes stored as one row per (review, user); ``helpful_count`` is
  always recomputed from those rows
"""

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

TITLE_MAX_LENGTH = 100
COMMENT_MAX_LENGTH = 1000
ADMIN_RESPONSE_MAX_LENGTH = 500
MAX_REVIEW_IMAGES = 5


class Review(models.Model):
    """
    A user's rating and feedback on a product.

    New reviews start as ``pending`` and only ``approved`` reviews are shown
    publicly and counted in rating statistics.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        APPROVED = 'approved', _('Approved')
        REJECTED = 'rejected', _('Rejected')

    product = models.ForeignKey(
        'products.Product',
        on_delete=models.CASCADE,
        related_name='reviews',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews',
    )
    rating = models.PositiveSmallIntegerField(
        validators=[
            MinValueValidator(1, message=_("Rating must be at least 1")),
            MaxValueValidator(5, message=_("Rating cannot exceed 5")),
        ],
    )
    title = models.CharField(max_length=TITLE_MAX_LENGTH)
    comment = models.TextField(max_length=COMMENT_MAX_LENGTH)
    images = models.JSONField(default=list, blank=True)
    verified = models.BooleanField(
        default=False,
        help_text=_("True when the reviewer has a confirmed order for this product"),
    )
    helpful_count = models.PositiveIntegerField(
        default=0,
        help_text=_("Number of ReviewHelpfulVote rows; never edited directly"),
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    admin_response = models.TextField(max_length=ADMIN_RESPONSE_MAX_LENGTH, blank=True)
    admin_responded_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['product', 'status', 'created_at'], name='review_product_status_idx'),
            models.Index(fields=['user', 'created_at'], name='review_user_created_idx'),
        ]
        constraints = [
            models.UniqueConstraint(fields=['product', 'user'], name='unique_review_per_user_product'),
            models.CheckConstraint(
                condition=Q(rating__gte=1) & Q(rating__lte=5),
                name='review_rating_range',
            ),
        ]
        verbose_name = _("Review")
        verbose_name_plural = _("Reviews")

    def __str__(self):
        return f"{self.user_id} - {self.product_id} - {self.rating}★"

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING


class ReviewHelpfulVote(models.Model):
    """One user's 'helpful' mark on a review."""

    review = models.ForeignKey(
        Review,
        on_delete=models.CASCADE,
        related_name='helpful_votes',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='helpful_review_votes',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['review', 'user'], name='unique_helpful_vote_per_user'),
        ]

    def __str__(self):
        return f"{self.user_id} found review {self.review_id} helpful"
