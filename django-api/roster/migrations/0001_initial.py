import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="CoreMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("subject", models.CharField(max_length=255, unique=True)),
                ("display_name", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("scope", models.CharField(max_length=255)),
                (
                    "kind",
                    models.CharField(
                        choices=[("standard", "Standard"), ("seasonal", "Seasonal")],
                        default="standard",
                        max_length=16,
                    ),
                ),
                ("title", models.CharField(blank=True, default="", max_length=255)),
                ("location", models.CharField(blank=True, default="", max_length=255)),
                ("starts_at", models.DateTimeField()),
                ("ends_at", models.DateTimeField()),
                ("priority_cutoff", models.DateTimeField(blank=True, null=True)),
                ("capacity", models.PositiveIntegerField()),
                ("waitlist_capacity", models.PositiveIntegerField(blank=True, null=True)),
                ("signup_cutoff", models.DurationField()),
                ("reminder_sent_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField()),
                ("version", models.PositiveIntegerField(default=0)),
            ],
            options={
                "ordering": ["starts_at", "created_at"],
                "indexes": [models.Index(fields=["scope", "starts_at"], name="roster_event_scope_start_idx")],
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "container",
                    models.CharField(choices=[("main", "Main"), ("wait", "Waitlist")], max_length=8),
                ),
                ("position", models.PositiveIntegerField()),
                ("subject", models.CharField(max_length=255)),
                ("display_name", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField()),
                ("priority", models.BooleanField(default=False)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="roster.event",
                    ),
                ),
            ],
            options={
                "ordering": ["container", "position"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("event", "container", "subject"),
                        name="roster_registration_unique_subject",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)),
                        name="roster_registration_quantity_positive",
                    ),
                ],
            },
        ),
    ]
