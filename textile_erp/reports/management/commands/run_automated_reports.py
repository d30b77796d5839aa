from django.core.management.base import BaseCommand
from django.utils import timezone

from textile_erp.reports.services import due_reports, run_report


class Command(BaseCommand):
    help = 'Generate and e-mail every active automated report that is due'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the due reports without sending them',
        )

    def handle(self, *args, **options):
        now = timezone.now()
        reports = list(due_reports(now))
        if not reports:
            self.stdout.write('No automated reports are due.')
            return

        sent = failed = 0
        for report in reports:
            label = f"{report.company.code} / {report.name} ({report.report_type}, {report.frequency})"
            if options['dry_run']:
                self.stdout.write(f"  would run: {label}")
                continue
            try:
                run_report(report, now=now)
            except Exception as e:
                failed += 1
                self.stdout.write(self.style.ERROR(f"  ✗ {label}: {str(e)}"))
                continue
            sent += 1
            self.stdout.write(self.style.SUCCESS(f"  ✓ {label} -> next run {report.next_run_at:%Y-%m-%d %H:%M}"))

        if not options['dry_run']:
            self.stdout.write(self.style.SUCCESS(f"\nDone: {sent} sent, {failed} failed"))
