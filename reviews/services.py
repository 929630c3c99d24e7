"""
Review operations and rating aggregation.

The (product, user) unique constraint is the authority on one review per
user per product; the pre-check only gives a friendlier path for the common
case. Helpful marks live in ReviewHelpfulVote and the review's
``helpful_count`` is recounted from them on every toggle.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, Q
from django.utils import timezone

from authentication.models import User
from authentication.permissions import authorize
from core.exceptions import (
    DuplicateError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from orders.models import Order, OrderItem
from products.models import Product

from .models import (
    ADMIN_RESPONSE_MAX_LENGTH,
    COMMENT_MAX_LENGTH,
    MAX_REVIEW_IMAGES,
    TITLE_MAX_LENGTH,
    Review,
    ReviewHelpfulVote,
)

logger = logging.getLogger(__name__)

PURCHASED_STATUSES = (
    Order.OrderStatus.CONFIRMED,
    Order.OrderStatus.PROCESSING,
    Order.OrderStatus.SHIPPED,
    Order.OrderStatus.DELIVERED,
)


@dataclass
class HelpfulToggle:
    helpful: int
    is_marked_by_user: bool


@dataclass
class RatingStatistics:
    average_rating: float
    total_reviews: int
    distribution: Dict[int, int]


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------

def _clean_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be a whole number between 1 and 5")
    return rating


def _clean_text(value, label: str, max_length: int) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required")
    if len(value) > max_length:
        raise ValidationError(f"{label} cannot exceed {max_length} characters")
    return value


def _clean_images(images) -> list:
    images = list(images or [])
    if len(images) > MAX_REVIEW_IMAGES:
        raise ValidationError(f"Maximum {MAX_REVIEW_IMAGES} images allowed per review")
    return images


def _get_review(review_id, for_update: bool = False) -> Review:
    queryset = Review.objects.select_for_update() if for_update else Review.objects
    try:
        return queryset.get(pk=review_id)
    except (Review.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Review not found")


def has_purchased(user: User, product: Product) -> bool:
    return OrderItem.objects.filter(
        order__user=user,
        product=product,
        order__status__in=PURCHASED_STATUSES,
    ).exists()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def create_review(user: User, product_id, rating, title, comment, images=None) -> Review:
    """
    Submit a review; it stays ``pending`` until moderated.
    """
    if not product_id or rating in (None, "") or not title or not comment:
        raise ValidationError("Product, rating, title, and comment are required")

    rating = _clean_rating(rating)
    title = _clean_text(title, "Title", TITLE_MAX_LENGTH)
    comment = _clean_text(comment, "Comment", COMMENT_MAX_LENGTH)
    images = _clean_images(images)

    try:
        product = Product.objects.get(pk=product_id)
    except (Product.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Product not found")

    if Review.objects.filter(product=product, user=user).exists():
        raise DuplicateError("You have already reviewed this product")

    try:
        with transaction.atomic():
            review = Review.objects.create(
                product=product,
                user=user,
                rating=rating,
                title=title,
                comment=comment,
                images=images,
                verified=has_purchased(user, product),
                status=Review.Status.PENDING,
            )
    except IntegrityError:
        # Lost the race against a concurrent submission for the same pair.
        raise DuplicateError("You have already reviewed this product")

    logger.info("Review %s created for product %s by user %s", review.pk, product.pk, user.pk)
    return review


def update_review(
    review_id,
    user: User,
    *,
    rating=None,
    title=None,
    comment=None,
    images=None,
    status: Optional[str] = None,
    admin_response: Optional[str] = None,
) -> Review:
    """
    Edit a review.

    Owners may change content while the review is pending. Admins may
    change content at any time and are the only ones allowed to set the
    moderation status or respond.
    """
    review = _get_review(review_id)
    is_owner = review.user_id == user.pk
    is_admin = authorize(user, User.Role.ADMIN)

    if not is_owner and not is_admin:
        raise ForbiddenError("Forbidden")

    wants_admin_fields = status is not None or admin_response is not None
    if wants_admin_fields and not is_admin:
        raise ForbiddenError("Only admins can change review status or respond")

    content = {
        key: value
        for key, value in (("rating", rating), ("title", title), ("comment", comment), ("images", images))
        if value is not None
    }
    if content and not is_admin and not review.is_pending:
        raise InvalidStateError(f"Cannot edit a review with status: {review.status}")

    update_fields = []
    if "rating" in content:
        review.rating = _clean_rating(content["rating"])
        update_fields.append("rating")
    if "title" in content:
        review.title = _clean_text(content["title"], "Title", TITLE_MAX_LENGTH)
        update_fields.append("title")
    if "comment" in content:
        review.comment = _clean_text(content["comment"], "Comment", COMMENT_MAX_LENGTH)
        update_fields.append("comment")
    if "images" in content:
        review.images = _clean_images(content["images"])
        update_fields.append("images")

    if status is not None:
        if status not in Review.Status.values:
            raise ValidationError("Invalid review status")
        review.status = status
        update_fields.append("status")
    if admin_response is not None:
        review.admin_response = _clean_text(admin_response, "Admin response", ADMIN_RESPONSE_MAX_LENGTH)
        review.admin_responded_at = timezone.now()
        update_fields.extend(["admin_response", "admin_responded_at"])

    if update_fields:
        review.save(update_fields=update_fields + ["updated_at"])
        logger.info("Review %s updated by user %s: %s", review.pk, user.pk, ", ".join(update_fields))
    return review


def delete_review(review_id, user: User) -> None:
    review = _get_review(review_id)
    if review.user_id != user.pk and not authorize(user, User.Role.ADMIN):
        raise ForbiddenError("Forbidden")
    review.delete()
    logger.info("Review %s deleted by user %s", review_id, user.pk)


# ---------------------------------------------------------------------------
# Helpful votes
# ---------------------------------------------------------------------------

def _remove_vote(review: Review, user: User) -> int:
    deleted, _ = ReviewHelpfulVote.objects.filter(review=review, user=user).delete()
    return deleted


def _add_vote(review: Review, user: User) -> None:
    try:
        with transaction.atomic():
            ReviewHelpfulVote.objects.create(review=review, user=user)
    except IntegrityError:
        # A concurrent request inserted the same vote first; the mark is set either way.
        logger.info("Helpful vote for review %s by user %s already present", review.pk, user.pk)


def toggle_helpful(review_id, user: User) -> HelpfulToggle:
    """
    Remove the caller's helpful mark if present, otherwise add it.

    The review row is locked for the duration, and the unique vote index
    backs that up on databases without row locks. ``helpful_count`` is
    recounted from the vote rows after the change.
    """
    with transaction.atomic():
        review = _get_review(review_id, for_update=True)
        if _remove_vote(review, user):
            marked = False
        else:
            _add_vote(review, user)
            marked = True
        helpful = ReviewHelpfulVote.objects.filter(review=review).count()
        Review.objects.filter(pk=review.pk).update(helpful_count=helpful)

    return HelpfulToggle(helpful=helpful, is_marked_by_user=marked)


# ---------------------------------------------------------------------------
# Visibility and aggregation
# ---------------------------------------------------------------------------

def visible_reviews(user):
    """
    Reviews the caller may see: admins see all, signed-in users see
    approved reviews plus their own, everyone else approved reviews only.
    """
    queryset = Review.objects.select_related("user", "product")
    if authorize(user, User.Role.ADMIN):
        return queryset
    if user is not None and user.is_authenticated:
        return queryset.filter(Q(user=user) | Q(status=Review.Status.APPROVED))
    return queryset.filter(status=Review.Status.APPROVED)


def rating_statistics(product_id) -> RatingStatistics:
    """
    Average, count and 1-5 star histogram over approved reviews.

    The average is rounded half-up to one decimal. A product without
    approved reviews yields zeros, never an error.
    """
    approved = Review.objects.filter(product_id=product_id, status=Review.Status.APPROVED)
    summary = approved.aggregate(average=Avg("rating"), total=Count("id"))

    distribution = {star: 0 for star in range(1, 6)}
    for row in approved.order_by().values("rating").annotate(count=Count("id")):
        distribution[row["rating"]] = row["count"]

    average = Decimal(str(summary["average"] or 0)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return RatingStatistics(
        average_rating=float(average),
        total_reviews=summary["total"],
        distribution=distribution,
    )
