"""
Mark institutes whose trial/subscription has expired as inactive.
Usage: python manage.py expire_subscriptions [--dry-run]
"""
import logging

from django.core.management.base import BaseCommand
from django.utils import timezone

from core.models import Institute

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Set subscription_status=inactive for institutes past subscription_expiry'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report only, make no changes',
        )

    def handle(self, *args, **options):
        expired = Institute.objects.filter(
            subscription_status__in=(Institute.STATUS_TRIAL, Institute.STATUS_ACTIVE),
            subscription_expiry__lt=timezone.now(),
        )
        count = expired.count()
        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'DRY RUN - {count} institute(s) would be deactivated'))
            for institute in expired:
                self.stdout.write(f'  {institute.code} {institute.name} (expired {institute.subscription_expiry:%Y-%m-%d})')
            return

        updated = expired.update(subscription_status=Institute.STATUS_INACTIVE, updated_at=timezone.now())
        logger.info('Deactivated %s expired institute(s)', updated)
        self.stdout.write(self.style.SUCCESS(f'Deactivated {updated} institute(s)'))
