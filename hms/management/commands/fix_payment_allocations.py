from django.core.management.base import BaseCommand

from hms.services.billing import repair_payment_allocations


class Command(BaseCommand):
    help = "Allocate payments that were recorded without any payment allocation."

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true',
                            help='Report what would be allocated without writing anything.')

    def handle(self, *args, **options):
        result = repair_payment_allocations(dry_run=options['dry_run'])
        for d in result['details']:
            if d['result'] == 'fixed':
                self.stdout.write(f"payment {d['paymentId']} ({d['receiptNumber']}) -> charge "
                                  f"{d['serviceChargeId']} by {d['matchedBy']}, {d['amount']}")
            else:
                self.stdout.write(self.style.WARNING(
                    f"payment {d['paymentId']} ({d['receiptNumber']}) skipped: {d['reason']}"))
        prefix = 'Would fix' if result['dryRun'] else 'Fixed'
        self.stdout.write(self.style.SUCCESS(f"{prefix} {result['fixed']} payment(s), skipped {result['skipped']}."))
