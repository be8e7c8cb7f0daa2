"""
Management command to create a staff account.

Usage:
    python manage.py create_staff_user owner --role owner --password s3cret
"""

from getpass import getpass

from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import StaffRole
from apps.accounts.services import create_staff_user, UsernameTakenError


class Command(BaseCommand):
    help = 'Create a staff account (owner, admin or repair staff)'

    def add_arguments(self, parser):
        parser.add_argument('username')
        parser.add_argument(
            '--role',
            choices=StaffRole.values,
            default=StaffRole.OWNER,
            help='Staff role (default: owner)',
        )
        parser.add_argument('--display-name', default='')
        parser.add_argument(
            '--password',
            help='Password; prompted for when omitted',
        )

    def handle(self, *args, **options):
        password = options['password'] or getpass('Password: ')
        if not password:
            raise CommandError('A password is required.')

        try:
            user = create_staff_user(
                username=options['username'],
                password=password,
                role=options['role'],
                display_name=options['display_name'],
            )
        except UsernameTakenError as e:
            raise CommandError(str(e))

        self.stdout.write(
            self.style.SUCCESS(f'Created {user.role} account "{user.username}".')
        )
