from django.conf import settings
from django.core.management.base import BaseCommand

from fiscal.selectors import find_stuck_processing_documents


class Command(BaseCommand):
    help = (
        "List fiscal documents stuck in 'processing' for longer than the given window. "
        "Read-only: nothing is changed."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--minutes",
            type=int,
            default=None,
            help="Age in minutes since the last update. Defaults to FISCAL_STUCK_PROCESSING_MINUTES.",
        )

    def handle(self, *args, **options):
        minutes = options.get("minutes")
        if minutes is None:
            minutes = getattr(settings, "FISCAL_STUCK_PROCESSING_MINUTES", 15)

        documents = find_stuck_processing_documents(older_than_minutes=minutes)
        for document in documents:
            self.stdout.write(
                f"{document.company_id} {document.id} {document.kind} "
                f"reference={document.gateway_reference} updated_at={document.updated_at.isoformat()}"
            )

        style = self.style.WARNING if documents else self.style.SUCCESS
        self.stdout.write(style(f"[REPORT] minutes={minutes} stuck={len(documents)}"))
