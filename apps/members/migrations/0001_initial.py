# Generated manually for members app

import uuid
from decimal import Decimal
from django.db import migrations, models
import django.db.models.deletion


TIER_CHOICES = [('bronze', 'Bronze'), ('silver', 'Silver'), ('gold', 'Gold'), ('platinum', 'Platinum')]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Member',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('email', models.EmailField(max_length=255, unique=True)),
                ('phone', models.CharField(blank=True, max_length=50)),
                ('address', models.TextField(blank=True)),
                ('password', models.CharField(blank=True, max_length=128)),
                ('tier', models.CharField(choices=TIER_CHOICES, default='bronze', max_length=20)),
                ('points', models.IntegerField(default=0)),
                ('lifetime_points', models.IntegerField(default=0)),
                ('wallet_balance', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'members',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['tier'], name='members_tier_idx'),
                    models.Index(fields=['created_at'], name='members_created_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('points__gte', 0)), name='member_points_non_negative'),
                    models.CheckConstraint(condition=models.Q(('lifetime_points__gte', 0)), name='member_lifetime_points_non_negative'),
                    models.CheckConstraint(condition=models.Q(('wallet_balance__gte', 0)), name='member_wallet_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MemberLevel',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('level', models.CharField(choices=TIER_CHOICES, max_length=20, unique=True)),
                ('min_points', models.PositiveIntegerField(default=0)),
                ('points_earn_rate', models.DecimalField(decimal_places=2, default=Decimal('1.00'), help_text='Points earned per currency unit spent', max_digits=5)),
                ('discount_percent', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'member_levels',
                'ordering': ['min_points'],
            },
        ),
        migrations.CreateModel(
            name='PointsTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('earn', 'Earn'), ('spend', 'Spend'), ('expire', 'Expire'), ('adjust', 'Adjust')], max_length=10)),
                ('amount', models.IntegerField()),
                ('balance', models.IntegerField(help_text='Points balance after this entry')),
                ('description', models.CharField(blank=True, max_length=255)),
                ('reference_id', models.CharField(blank=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='points_transactions', to='members.member')),
            ],
            options={
                'db_table': 'points_transactions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['member', '-created_at'], name='points_tx_member_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='WalletTransaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('type', models.CharField(choices=[('topup', 'Top-up'), ('payment', 'Payment'), ('refund', 'Refund'), ('adjust', 'Adjust')], max_length=10)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('balance', models.DecimalField(decimal_places=2, help_text='Wallet balance after this entry', max_digits=12)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('reference_id', models.CharField(blank=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='wallet_transactions', to='members.member')),
            ],
            options={
                'db_table': 'wallet_transactions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['member', '-created_at'], name='wallet_tx_member_idx'),
                ],
            },
        ),
    ]
