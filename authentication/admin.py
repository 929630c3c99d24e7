from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import AuditLog, User


@admin.register(User)
class StorefrontUserAdmin(BaseUserAdmin):
    ordering = ['-created_at']
    list_display = ['email', 'name', 'phone', 'role', 'is_active', 'created_at']
    list_filter = ['role', 'is_active', 'is_superuser']
    search_fields = ['email', 'username', 'name', 'phone']
    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined']
    fieldsets = (
        (None, {'fields': ('email', 'username', 'password')}),
        ('Profile', {'fields': ('name', 'phone', 'role')}),
        ('Access', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Dates', {'fields': ('last_login', 'date_joined', 'created_at', 'updated_at')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'username', 'name', 'role', 'password1', 'password2'),
        }),
    )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only view of order and review audit events."""

    list_display = ['timestamp', 'action', 'resource_type', 'resource_id', 'status', 'user', 'ip_address']
    list_filter = ['resource_type', 'action', 'status']
    search_fields = ['resource_id', 'user__email', 'ip_address']
    date_hierarchy = 'timestamp'

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
