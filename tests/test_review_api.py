from datetime import timedelta

import pytest
from django.utils import timezone

from authentication.models import AuditLog, User
from reviews.models import Review

pytestmark = pytest.mark.django_db


def _review(user, product, rating=5, status=Review.Status.APPROVED, helpful_count=0):
    return Review.objects.create(
        user=user,
        product=product,
        rating=rating,
        title="Holy grail",
        comment="My skin has never looked better.",
        status=status,
        helpful_count=helpful_count,
    )


class TestList:
    def test_defaults_to_approved_newest_first(self, api_client, customer, other_customer, product):
        older = _review(customer, product, rating=4)
        Review.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(hours=1))
        newer = _review(other_customer, product, rating=5)
        stranger = User.objects.create_user("carol", "carol@example.com", "pw-12345")
        _review(stranger, product, status=Review.Status.PENDING)

        response = api_client.get("/api/reviews/", {"product": product.pk})

        assert response.status_code == 200
        assert response.data["success"] is True
        assert [review["id"] for review in response.data["data"]] == [newer.pk, older.pk]
        assert response.data["pagination"] == {"total": 2, "page": 1, "pages": 1, "limit": 10}

    def test_representation(self, api_client, customer, product):
        _review(customer, product)
        review = api_client.get("/api/reviews/").data["data"][0]

        assert review["user"] == {"id": customer.pk, "name": "Alice"}
        assert review["product"] == {"id": product.pk, "name": product.name, "slug": product.slug}
        assert review["helpful"] == 0
        assert review["verified"] is False
        assert review["adminResponse"] is None

    def test_sort_by_helpful(self, api_client, customer, other_customer, product):
        less = _review(customer, product, helpful_count=1)
        more = _review(other_customer, product, helpful_count=7)

        response = api_client.get("/api/reviews/", {"sort": "-helpful"})
        assert [review["id"] for review in response.data["data"]] == [more.pk, less.pk]

    def test_limit_and_page(self, api_client, product):
        for i in range(3):
            user = User.objects.create_user(f"fan{i}", f"fan{i}@example.com", "pw-12345")
            _review(user, product)

        response = api_client.get("/api/reviews/", {"limit": 2, "page": 2})
        assert len(response.data["data"]) == 1
        assert response.data["pagination"] == {"total": 3, "page": 2, "pages": 2, "limit": 2}

    def test_page_past_the_end(self, api_client, customer, product):
        _review(customer, product)
        response = api_client.get("/api/reviews/", {"page": 3})

        assert response.status_code == 200
        assert response.data["data"] == []
        assert response.data["pagination"] == {"total": 1, "page": 3, "pages": 1, "limit": 10}

    def test_stale_cookie_still_lists(self, api_client, customer, product):
        _review(customer, product)
        api_client.cookies["token"] = "expired-or-garbage"
        response = api_client.get("/api/reviews/")
        assert response.status_code == 200
        assert response.data["pagination"]["total"] == 1

    def test_filter_by_rating(self, api_client, customer, other_customer, product):
        _review(customer, product, rating=2)
        five = _review(other_customer, product, rating=5)

        response = api_client.get("/api/reviews/", {"rating": 5})
        assert [review["id"] for review in response.data["data"]] == [five.pk]

    def test_status_all_for_admin(self, admin_client, customer, other_customer, product):
        _review(customer, product, status=Review.Status.PENDING)
        _review(other_customer, product, status=Review.Status.REJECTED)

        assert admin_client.get("/api/reviews/").data["pagination"]["total"] == 0
        assert admin_client.get("/api/reviews/", {"status": "all"}).data["pagination"]["total"] == 2

    def test_status_all_respects_visibility(self, api_client, customer, product):
        _review(customer, product, status=Review.Status.PENDING)
        response = api_client.get("/api/reviews/", {"status": "all"})
        assert response.data["pagination"]["total"] == 0

    def test_author_can_list_own_pending(self, customer_client, customer, product):
        _review(customer, product, status=Review.Status.PENDING)
        response = customer_client.get("/api/reviews/", {"status": "pending", "user": customer.pk})
        assert response.data["pagination"]["total"] == 1

    def test_unknown_status_rejected(self, api_client):
        response = api_client.get("/api/reviews/", {"status": "hidden"})
        assert response.status_code == 400
        assert response.data["success"] is False


class TestCreate:
    def test_create(self, customer_client, product):
        response = customer_client.post(
            "/api/reviews/",
            {"product": product.pk, "rating": 5, "title": "Glowing", "comment": "Love it"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["success"] is True
        assert response.data["data"]["status"] == "pending"
        assert AuditLog.objects.get(action="CREATE", resource_type="REVIEW").status == AuditLog.Status.SUCCESS

    def test_duplicate(self, customer_client, customer, product):
        _review(customer, product)
        response = customer_client.post(
            "/api/reviews/",
            {"product": product.pk, "rating": 3, "title": "Again", "comment": "Second try"},
            format="json",
        )
        assert response.status_code == 400
        assert response.data == {"success": False, "message": "You have already reviewed this product"}

    def test_missing_fields(self, customer_client, product):
        response = customer_client.post("/api/reviews/", {"product": product.pk}, format="json")
        assert response.status_code == 400
        assert response.data["message"] == "Product, rating, title, and comment are required"

    def test_unknown_product(self, customer_client):
        response = customer_client.post(
            "/api/reviews/",
            {"product": 999999, "rating": 5, "title": "Ghost", "comment": "Where is it"},
            format="json",
        )
        assert response.status_code == 404

    def test_requires_authentication(self, api_client, product):
        response = api_client.post(
            "/api/reviews/",
            {"product": product.pk, "rating": 5, "title": "Anon", "comment": "Hi"},
            format="json",
        )
        assert response.status_code == 401
        assert response.data["success"] is False
        assert not Review.objects.exists()


class TestUpdateDelete:
    def test_owner_updates_pending(self, customer_client, customer, product):
        review = _review(customer, product, status=Review.Status.PENDING)
        response = customer_client.patch(
            f"/api/reviews/{review.pk}/", {"comment": "Updated after a month"}, format="json",
        )
        assert response.status_code == 200
        assert response.data["data"]["comment"] == "Updated after a month"

    def test_owner_cannot_approve(self, customer_client, customer, product):
        review = _review(customer, product, status=Review.Status.PENDING)
        response = customer_client.patch(
            f"/api/reviews/{review.pk}/", {"status": "approved"}, format="json",
        )
        assert response.status_code == 403

    def test_admin_response(self, admin_client, customer, product):
        review = _review(customer, product, status=Review.Status.PENDING)
        response = admin_client.put(
            f"/api/reviews/{review.pk}/",
            {"status": "approved", "adminResponse": "Thanks for sharing!"},
            format="json",
        )
        assert response.status_code == 200
        data = response.data["data"]
        assert data["status"] == "approved"
        assert data["adminResponse"]["message"] == "Thanks for sharing!"
        assert data["adminResponse"]["respondedAt"] is not None

    def test_delete_by_stranger(self, other_client, customer, product):
        review = _review(customer, product)
        response = other_client.delete(f"/api/reviews/{review.pk}/")
        assert response.status_code == 403
        assert Review.objects.filter(pk=review.pk).exists()

    def test_delete_by_owner(self, customer_client, customer, product):
        review = _review(customer, product)
        response = customer_client.delete(f"/api/reviews/{review.pk}/")
        assert response.status_code == 200
        assert response.data == {"success": True, "message": "Review deleted successfully"}

    def test_unknown_review(self, customer_client):
        response = customer_client.delete("/api/reviews/999999/")
        assert response.status_code == 404
        assert response.data["message"] == "Review not found"


class TestHelpful:
    def test_toggle(self, other_client, customer, product):
        review = _review(customer, product)

        first = other_client.post(f"/api/reviews/{review.pk}/helpful/")
        assert first.status_code == 200
        assert first.data["data"] == {"helpful": 1, "isMarkedByUser": True}

        second = other_client.post(f"/api/reviews/{review.pk}/helpful/")
        assert second.data["data"] == {"helpful": 0, "isMarkedByUser": False}

    def test_requires_authentication(self, api_client, customer, product):
        review = _review(customer, product)
        assert api_client.post(f"/api/reviews/{review.pk}/helpful/").status_code == 401


class TestStats:
    def test_empty(self, api_client, product):
        response = api_client.get(f"/api/reviews/stats/{product.pk}/")
        assert response.status_code == 200
        assert response.data == {
            "success": True,
            "data": {
                "averageRating": 0.0,
                "totalReviews": 0,
                "distribution": {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0},
            },
        }

    def test_with_reviews(self, api_client, customer, other_customer, product):
        _review(customer, product, rating=5)
        _review(other_customer, product, rating=4)

        data = api_client.get(f"/api/reviews/stats/{product.pk}/").data["data"]
        assert data["averageRating"] == 4.5
        assert data["totalReviews"] == 2
        assert data["distribution"]["5"] == 1
        assert data["distribution"]["4"] == 1

    def test_stale_cookie(self, api_client, customer, product):
        _review(customer, product, rating=4)
        api_client.cookies["token"] = "expired-or-garbage"

        response = api_client.get(f"/api/reviews/stats/{product.pk}/")

        assert response.status_code == 200
        assert response.data["data"]["totalReviews"] == 1
        assert response.data["data"]["averageRating"] == 4.0
