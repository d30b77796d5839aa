from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from textile_erp.core.models import Company, User


class Command(BaseCommand):
    help = 'Create a company together with its owner account'

    def add_arguments(self, parser):
        parser.add_argument('code', help='Company code (3-20 letters or digits)')
        parser.add_argument('name', help='Company name')
        parser.add_argument('username', help='Username of the owner account')
        parser.add_argument('--password', required=True, help='Password of the owner account')
        parser.add_argument('--email', default='', help='E-mail of the owner account')

    def handle(self, *args, **options):
        code = options['code'].strip().upper()
        if Company.objects.filter(code=code).exists():
            raise CommandError(f"Company {code} already exists")
        if User.objects.filter(username=options['username']).exists():
            raise CommandError(f"User {options['username']} already exists")

        with transaction.atomic():
            company = Company(code=code, name=options['name'])
            company.full_clean()
            company.save()
            user = User(
                username=options['username'],
                email=options['email'],
                company=company,
                role='owner',
                is_active=True,
            )
            user.set_password(options['password'])
            user.save()

        self.stdout.write(self.style.SUCCESS(f"✓ Created company {company.code} with owner {user.username}"))
