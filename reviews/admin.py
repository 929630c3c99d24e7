from django.contrib import admin

from .models import Review, ReviewHelpfulVote


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['product', 'user', 'rating', 'status', 'verified', 'helpful_count', 'created_at']
    list_filter = ['status', 'rating', 'verified', 'created_at']
    search_fields = ['title', 'comment', 'product__name', 'user__email']
    readonly_fields = ['helpful_count', 'verified', 'admin_responded_at', 'created_at', 'updated_at']
    actions = ['approve_reviews', 'reject_reviews']

    @admin.action(description="Approve selected reviews")
    def approve_reviews(self, request, queryset):
        queryset.update(status=Review.Status.APPROVED)

    @admin.action(description="Reject selected reviews")
    def reject_reviews(self, request, queryset):
        queryset.update(status=Review.Status.REJECTED)


@admin.register(ReviewHelpfulVote)
class ReviewHelpfulVoteAdmin(admin.ModelAdmin):
    list_display = ['review', 'user', 'created_at']
    raw_id_fields = ['review', 'user']
