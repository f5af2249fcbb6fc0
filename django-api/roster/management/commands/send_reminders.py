import logging
from datetime import timedelta

from django.core.management.base import BaseCommand

from roster.wiring import get_reminder_service

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Run one reminder tick. Schedule it with cron or a worker loop."""

    help = "Send reminders for events starting within the reminder lead time."

    def add_arguments(self, parser):
        parser.add_argument(
            "--lead-minutes",
            type=int,
            default=None,
            help="Override ROSTER['REMINDER_LEAD'] for this run.",
        )

    def handle(self, *args, **options):
        minutes = options["lead_minutes"]
        lead = timedelta(minutes=minutes) if minutes is not None else None
        sent = get_reminder_service(lead=lead).tick()
        logger.info("Reminder tick finished, %d sent", len(sent))
        self.stdout.write(f"Sent {len(sent)} reminder(s)")
