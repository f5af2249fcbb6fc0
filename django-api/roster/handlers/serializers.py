"""Serializers between domain models and API payloads."""

from datetime import timedelta

from rest_framework import serializers

from roster.domain import EventId, Seasonal
from roster.domain.allocation import AdmitResult, WithdrawResult
from roster.domain.lifecycle import signup_closes_at, status_of
from roster.services.intents import ByDate, ById, EventDraft, Operation, SingleOpen


class RegistrationSerializer(serializers.Serializer):
    """Serializer for Registration domain model."""

    subject = serializers.CharField()
    display_name = serializers.CharField()
    quantity = serializers.IntegerField()
    priority = serializers.BooleanField()


class EventSerializer(serializers.Serializer):
    """Serializer for Event domain snapshots.

    ``status`` is evaluated at ``context["now"]``.
    """

    id = serializers.UUIDField(source="id.value")
    scope = serializers.CharField()
    kind = serializers.SerializerMethodField()
    title = serializers.CharField()
    location = serializers.CharField()
    starts_at = serializers.DateTimeField(source="window.start")
    ends_at = serializers.DateTimeField(source="window.end")
    priority_cutoff = serializers.SerializerMethodField()
    signup_closes_at = serializers.SerializerMethodField()
    capacity = serializers.IntegerField(source="capacity.value")
    waitlist_capacity = serializers.SerializerMethodField()
    participant_total = serializers.IntegerField()
    waitlist_total = serializers.IntegerField()
    participants = RegistrationSerializer(many=True)
    waitlist = RegistrationSerializer(many=True)
    reminder_sent_at = serializers.DateTimeField(allow_null=True)
    status = serializers.SerializerMethodField()

    def get_kind(self, event) -> str:
        return "seasonal" if isinstance(event.kind, Seasonal) else "standard"

    def get_priority_cutoff(self, event) -> str | None:
        if not isinstance(event.kind, Seasonal):
            return None
        return serializers.DateTimeField().to_representation(event.kind.priority_cutoff)

    def get_signup_closes_at(self, event) -> str:
        return serializers.DateTimeField().to_representation(signup_closes_at(event))

    def get_waitlist_capacity(self, event) -> int | None:
        return event.waitlist_capacity.value if event.waitlist_capacity else None

    def get_status(self, event) -> str:
        return status_of(event, self.context["now"]).value


class EventDraftSerializer(serializers.Serializer):
    """Input for creating an event."""

    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    title = serializers.CharField(required=False, allow_blank=True, default="")
    location = serializers.CharField(required=False, allow_blank=True, default="")
    capacity = serializers.IntegerField(required=False, min_value=1)
    waitlist_capacity = serializers.IntegerField(required=False, min_value=1)
    signup_cutoff_minutes = serializers.IntegerField(required=False)
    priority_cutoff = serializers.DateTimeField(required=False)

    def validate(self, attrs):
        if attrs["ends_at"] <= attrs["starts_at"]:
            raise serializers.ValidationError("ends_at must be after starts_at")
        return attrs

    def to_draft(self) -> EventDraft:
        data = self.validated_data
        minutes = data.get("signup_cutoff_minutes")
        return EventDraft(
            starts_at=data["starts_at"],
            ends_at=data["ends_at"],
            title=data["title"],
            location=data["location"],
            capacity=data.get("capacity"),
            waitlist_capacity=data.get("waitlist_capacity"),
            signup_cutoff=timedelta(minutes=minutes) if minutes is not None else None,
            priority_cutoff=data.get("priority_cutoff"),
        )


class IntentSerializer(serializers.Serializer):
    """Input for admit, withdraw and delete intents.

    The target event is named by ``event_id``, by ``date``, or left implicit
    when the scope has a single open event.
    """

    operation = serializers.ChoiceField(
        choices=[op.value for op in (Operation.ADMIT, Operation.WITHDRAW, Operation.DELETE)]
    )
    subject = serializers.CharField(required=False, default="")
    display_name = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(required=False, default=1, min_value=1)
    event_id = serializers.UUIDField(required=False)
    date = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs["operation"] != Operation.DELETE.value and not attrs["subject"]:
            raise serializers.ValidationError({"subject": "This field is required."})
        if "event_id" in attrs and "date" in attrs:
            raise serializers.ValidationError("Give either event_id or date, not both")
        return attrs

    def to_selector(self):
        data = self.validated_data
        if "event_id" in data:
            return ById(EventId(data["event_id"]))
        if "date" in data:
            return ByDate(data["date"])
        return SingleOpen()


class MemberSerializer(serializers.Serializer):
    subject = serializers.CharField()
    display_name = serializers.CharField(required=False, allow_blank=True, default="")


def serialize_result(result) -> dict | None:
    if isinstance(result, AdmitResult):
        return {
            "main_added": result.main_added,
            "wait_added": result.wait_added,
            "rejected": result.rejected,
            "capacity_exceeded": result.capacity_exceeded,
        }
    if isinstance(result, WithdrawResult):
        return {
            "from_waitlist": result.from_waitlist,
            "from_participants": result.from_participants,
            "promoted": RegistrationSerializer(result.promoted, many=True).data,
        }
    return None
