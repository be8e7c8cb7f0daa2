# Generated manually to seed the default tier rules
from decimal import Decimal

from django.db import migrations


DEFAULT_LEVELS = [
    ('bronze', 0, Decimal('1.00'), Decimal('0.00')),
    ('silver', 1000, Decimal('1.25'), Decimal('5.00')),
    ('gold', 5000, Decimal('1.50'), Decimal('10.00')),
    ('platinum', 10000, Decimal('2.00'), Decimal('15.00')),
]


def seed_levels(apps, schema_editor):
    """Create the default tier rules unless they already exist."""
    MemberLevel = apps.get_model('members', 'MemberLevel')

    for level, min_points, earn_rate, discount in DEFAULT_LEVELS:
        MemberLevel.objects.get_or_create(
            level=level,
            defaults={
                'min_points': min_points,
                'points_earn_rate': earn_rate,
                'discount_percent': discount,
            },
        )


def unseed_levels(apps, schema_editor):
    MemberLevel = apps.get_model('members', 'MemberLevel')
    MemberLevel.objects.filter(level__in=[row[0] for row in DEFAULT_LEVELS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('members', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_levels, unseed_levels),
    ]
