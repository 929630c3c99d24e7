"""
Product catalogue model.

Products are managed by the catalogue back-office; the commerce core only
reads them to snapshot order lines and to validate review targets.
"""

from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    """
    Represents an item available for sale.

    Prices are stored as Decimal. ``is_active`` hides a product from the
    storefront without deleting it, so historic orders and reviews keep
    their references.
    """

    name = models.CharField(
        max_length=200,
        db_index=True,
        help_text=_("Product name"),
    )
    slug = models.SlugField(
        max_length=220,
        unique=True,
        help_text=_("URL-friendly unique identifier"),
    )
    description = models.TextField(blank=True)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text=_("Current selling price"),
    )
    images = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Ordered list of image URLs; the first one is the cover"),
    )
    stock = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(
        default=True,
        help_text=_("If False, product is hidden from customers but preserved for history"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_active', 'created_at'], name='product_active_created_idx'),
        ]
        verbose_name = _("Product")
        verbose_name_plural = _("Products")

    def __str__(self):
        return f"{self.name} ({self.slug})"

    @property
    def cover_image(self) -> str:
        return self.images[0] if self.images else ''
