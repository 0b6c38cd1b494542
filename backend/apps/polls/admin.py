"""
Admin configuration for Polls app.
"""

from django.contrib import admin

from .models import Poll, PollOption


class PollOptionInline(admin.TabularInline):
    model = PollOption
    extra = 0
    fields = ["text", "vote_count", "is_deleted"]
    readonly_fields = ["vote_count"]


@admin.register(Poll)
class PollAdmin(admin.ModelAdmin):
    """Admin interface for Poll model."""

    list_display = ["question", "poll_type", "owner_account", "requires_account", "created_at"]
    list_filter = ["poll_type", "requires_account", "created_at"]
    search_fields = ["question", "owner_account__username"]
    readonly_fields = ["id", "owner_token", "created_at", "updated_at"]
    inlines = [PollOptionInline]
    fieldsets = (
        ("Question", {"fields": ("id", "question", "poll_type", "requires_account")}),
        ("Ownership", {"fields": ("owner_account", "owner_token")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(PollOption)
class PollOptionAdmin(admin.ModelAdmin):
    """Admin interface for PollOption model."""

    list_display = ["text", "poll", "vote_count", "is_deleted", "created_at"]
    list_filter = ["is_deleted", "created_at"]
    search_fields = ["text", "poll__question"]
    readonly_fields = ["created_at", "vote_count"]
