import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Review",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rating", models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1, message="Rating must be at least 1"), django.core.validators.MaxValueValidator(5, message="Rating cannot exceed 5")])),
                ("title", models.CharField(max_length=100)),
                ("comment", models.TextField(max_length=1000)),
                ("images", models.JSONField(blank=True, default=list)),
                ("verified", models.BooleanField(default=False, help_text="True when the reviewer has a confirmed order for this product")),
                ("helpful_count", models.PositiveIntegerField(default=0, help_text="Number of ReviewHelpfulVote rows; never edited directly")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")], db_index=True, default="pending", max_length=10)),
                ("admin_response", models.TextField(blank=True, max_length=500)),
                ("admin_responded_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reviews", to="products.product")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reviews", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Review",
                "verbose_name_plural": "Reviews",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["product", "status", "created_at"], name="review_product_status_idx"),
                    models.Index(fields=["user", "created_at"], name="review_user_created_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("product", "user"), name="unique_review_per_user_product"),
                    models.CheckConstraint(
                        condition=models.Q(("rating__gte", 1), ("rating__lte", 5)),
                        name="review_rating_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReviewHelpfulVote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("review", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="helpful_votes", to="reviews.review")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="helpful_review_votes", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("review", "user"), name="unique_helpful_vote_per_user"),
                ],
            },
        ),
    ]
