from django.core.management.base import BaseCommand

from requests_core.overdue import record_overdue_requests


class Command(BaseCommand):
    help = "Record audit entries for in-flight requests past their required-by deadline"

    def handle(self, *args, **options):
        count = record_overdue_requests()
        self.stdout.write(f"{count} newly overdue request(s) recorded")
