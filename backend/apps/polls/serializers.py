"""
Serializers for Polls app.

They validate payload shape only; domain rules (non-blank question, at least
two options, ownership) live in the poll services.
"""

from rest_framework import serializers

from .models import Poll, PollOption


class PollOptionSerializer(serializers.ModelSerializer):
    """Serializer for an option as shown to voters."""

    class Meta:
        model = PollOption
        fields = ["id", "text", "vote_count"]
        read_only_fields = fields


class PollCreateSerializer(serializers.Serializer):
    """Serializer for creating a poll with its initial options."""

    question = serializers.CharField(allow_blank=True, trim_whitespace=False, help_text="Poll question")
    options = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        allow_empty=True,
        help_text="At least two option texts",
    )
    poll_type = serializers.ChoiceField(choices=Poll.POLL_TYPE_CHOICES, default=Poll.SINGLE)
    requires_account = serializers.BooleanField(default=False)

    def to_internal_value(self, data):
        # Accept the camelCase key sent by browser clients
        if hasattr(data, "get") and "poll_type" not in data and "pollType" in data:
            data = {**data, "poll_type": data.get("pollType")}
        return super().to_internal_value(data)


class PollUpdateSerializer(serializers.Serializer):
    """Serializer for editing a poll's question."""

    question = serializers.CharField(allow_blank=True, trim_whitespace=False)


class OptionCreateSerializer(serializers.Serializer):
    """Serializer for adding one option to a poll."""

    text = serializers.CharField(allow_blank=True, trim_whitespace=False, required=False)
    option_text = serializers.CharField(allow_blank=True, trim_whitespace=False, required=False)

    def validate(self, attrs):
        attrs["text"] = attrs.get("text") or attrs.get("option_text") or ""
        attrs.pop("option_text", None)
        return attrs
