"""
Admin configuration for Votes app.
"""

from django.contrib import admin

from .models import Vote


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    """Admin interface for the vote ledger (read-only)."""

    list_display = ["voter_key", "poll", "option", "ip_address", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["voter_key", "poll__question", "option__text", "fingerprint", "ip_address"]
    readonly_fields = ["poll", "option", "voter_key", "ip_address", "fingerprint", "user_agent", "created_at"]
    fieldsets = (
        ("Vote Details", {"fields": ("poll", "option")}),
        ("Identification", {"fields": ("voter_key", "fingerprint")}),
        ("Tracking", {"fields": ("ip_address", "user_agent")}),
        ("Timestamp", {"fields": ("created_at",)}),
    )

    def has_add_permission(self, request):
        # Ledger rows are written by the vote service only
        return False

    def has_change_permission(self, request, obj=None):
        return False
