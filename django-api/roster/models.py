"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.db import models


class Event(models.Model):
    """Persistence model for roster events."""

    class Kind(models.TextChoices):
        STANDARD = "standard", "Standard"
        SEASONAL = "seasonal", "Seasonal"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    scope = models.CharField(max_length=255)
    kind = models.CharField(max_length=16, choices=Kind.choices, default=Kind.STANDARD)
    title = models.CharField(max_length=255, blank=True, default="")
    location = models.CharField(max_length=255, blank=True, default="")
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    priority_cutoff = models.DateTimeField(blank=True, null=True)
    capacity = models.PositiveIntegerField()
    waitlist_capacity = models.PositiveIntegerField(blank=True, null=True)
    signup_cutoff = models.DurationField()
    reminder_sent_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField()
    version = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["starts_at", "created_at"]
        indexes = [
            models.Index(fields=["scope", "starts_at"], name="roster_event_scope_start_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title or self.scope} - {self.starts_at}"


class Registration(models.Model):
    """Seats held by one subject in the main list or the waitlist."""

    class Container(models.TextChoices):
        MAIN = "main", "Main"
        WAIT = "wait", "Waitlist"

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    container = models.CharField(max_length=8, choices=Container.choices)
    position = models.PositiveIntegerField()
    subject = models.CharField(max_length=255)
    display_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    priority = models.BooleanField(default=False)

    class Meta:
        ordering = ["container", "position"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "container", "subject"],
                name="roster_registration_unique_subject",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="roster_registration_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.display_name} (+{self.quantity})"


class CoreMember(models.Model):
    """A subject with priority admission to seasonal events."""

    subject = models.CharField(max_length=255, unique=True)
    display_name = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return self.display_name or self.subject
