from django.core.management.base import BaseCommand

from housing.services.reconcile import find_violations, repair


class Command(BaseCommand):
    help = "Check room counters, student/application mirrors and hostel availability; --fix rebuilds them."

    def add_arguments(self, parser):
        parser.add_argument('--fix', action='store_true', help='Rebuild derived values from assigned students.')

    def handle(self, *args, **opts):
        report = repair() if opts['fix'] else find_violations()
        for v in report.violations:
            self.stdout.write(self.style.WARNING(str(v)))
        for v in report.unfixable:
            self.stdout.write(self.style.ERROR(f"unfixable: {v}"))

        if report.ok:
            self.stdout.write(self.style.SUCCESS("Allocations are consistent."))
        elif opts['fix']:
            self.stdout.write(self.style.SUCCESS(f"Repaired {len(report.violations) - len(report.unfixable)} violation(s)."))
        else:
            self.stdout.write(self.style.ERROR(f"{len(report.violations)} violation(s) found; rerun with --fix."))
