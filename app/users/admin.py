from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import AuditLog, Company, RolePermission, TeamInvitation, User, UserPreferences, UserRole


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ("name", "cnpj", "responsible_email", "address_city", "created_at")
    search_fields = ("name", "cnpj", "responsible_email")
    ordering = ("name",)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "first_name", "last_name", "company", "role", "is_active")
    list_filter = ("role", "is_active", "company")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Empresa", {"fields": ("company", "role", "roles", "phone")}),
    )


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ("code",)


@admin.register(RolePermission)
class RolePermissionAdmin(admin.ModelAdmin):
    list_display = ("role_code", "permission_key", "allowed", "label")
    list_filter = ("role_code", "allowed")
    search_fields = ("permission_key", "label")


@admin.register(TeamInvitation)
class TeamInvitationAdmin(admin.ModelAdmin):
    list_display = ("email", "company", "role", "status", "expires_at", "created_at")
    list_filter = ("status", "role", "company")
    search_fields = ("email", "first_name", "last_name")


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action_type", "table_name", "user", "company", "created_at")
    list_filter = ("action_type", "company")
    ordering = ("-created_at",)


@admin.register(UserPreferences)
class UserPreferencesAdmin(admin.ModelAdmin):
    list_display = ("user", "version", "updated_at")
