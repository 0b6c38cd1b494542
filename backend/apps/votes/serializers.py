"""
Serializers for Votes app.
"""

from rest_framework import serializers


class VoteSubmitSerializer(serializers.Serializer):
    """
    Serializer for a vote submission.

    Single-choice clients send ``option_id``; multiple-choice clients send
    ``option_ids``. The fingerprint is required only by some identity policies,
    which the vote service enforces.
    """

    option_id = serializers.IntegerField(required=False, allow_null=True, help_text="Chosen option")
    option_ids = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        allow_empty=True,
        help_text="Chosen options of a multiple-choice poll",
    )
    device_fingerprint = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=256,
        help_text="Client-computed device fingerprint",
    )

    def validate(self, attrs):
        """Collapse option_id/option_ids into one list."""
        option_ids = attrs.get("option_ids")
        if not option_ids and attrs.get("option_id") is not None:
            option_ids = [attrs["option_id"]]
        if not option_ids:
            raise serializers.ValidationError({"option_ids": "Select at least one option"})
        attrs["option_ids"] = option_ids
        attrs.pop("option_id", None)
        return attrs
