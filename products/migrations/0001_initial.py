import django.core.validators
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(db_index=True, help_text="Product name", max_length=200)),
                ("slug", models.SlugField(help_text="URL-friendly unique identifier", max_length=220, unique=True)),
                ("description", models.TextField(blank=True)),
                ("price", models.DecimalField(decimal_places=2, help_text="Current selling price", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("images", models.JSONField(blank=True, default=list, help_text="Ordered list of image URLs; the first one is the cover")),
                ("stock", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True, help_text="If False, product is hidden from customers but preserved for history")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["is_active", "created_at"], name="product_active_created_idx"),
                ],
            },
        ),
    ]
