"""
Review serializers for the storefront API.

``ReviewSerializer`` renders the public camelCase shape; the input
serializers only coerce types and leave the business rules (ownership,
moderation state, uniqueness) to ``reviews.services``.
"""

from rest_framework import serializers

from .models import (
    ADMIN_RESPONSE_MAX_LENGTH,
    COMMENT_MAX_LENGTH,
    MAX_REVIEW_IMAGES,
    TITLE_MAX_LENGTH,
    Review,
)


class ReviewSerializer(serializers.ModelSerializer):
    user = serializers.SerializerMethodField()
    product = serializers.SerializerMethodField()
    helpful = serializers.IntegerField(source='helpful_count', read_only=True)
    adminResponse = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Review
        fields = [
            'id',
            'product',
            'user',
            'rating',
            'title',
            'comment',
            'images',
            'verified',
            'helpful',
            'status',
            'adminResponse',
            'createdAt',
            'updatedAt',
        ]
        read_only_fields = fields

    def get_user(self, obj):
        return {'id': obj.user_id, 'name': obj.user.name or obj.user.username}

    def get_product(self, obj):
        return {'id': obj.product_id, 'name': obj.product.name, 'slug': obj.product.slug}

    def get_adminResponse(self, obj):
        if not obj.admin_response:
            return None
        return {
            'message': obj.admin_response,
            'respondedAt': serializers.DateTimeField().to_representation(obj.admin_responded_at)
            if obj.admin_responded_at else None,
        }


class ReviewCreateSerializer(serializers.Serializer):
    product = serializers.IntegerField(required=False, allow_null=True)
    rating = serializers.IntegerField(required=False, allow_null=True)
    title = serializers.CharField(required=False, allow_blank=True, max_length=TITLE_MAX_LENGTH)
    comment = serializers.CharField(required=False, allow_blank=True, max_length=COMMENT_MAX_LENGTH)
    images = serializers.ListField(
        child=serializers.CharField(), required=False, max_length=MAX_REVIEW_IMAGES,
    )


class ReviewUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(required=False)
    title = serializers.CharField(required=False, max_length=TITLE_MAX_LENGTH)
    comment = serializers.CharField(required=False, max_length=COMMENT_MAX_LENGTH)
    images = serializers.ListField(
        child=serializers.CharField(), required=False, max_length=MAX_REVIEW_IMAGES,
    )
    status = serializers.ChoiceField(choices=Review.Status.choices, required=False)
    adminResponse = serializers.CharField(required=False, max_length=ADMIN_RESPONSE_MAX_LENGTH)
