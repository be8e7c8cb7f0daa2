# Generated manually to give ledger rows a per-member posting order

from django.db import migrations, models


def backfill_sequence(apps, schema_editor):
    """Number existing rows per member in (created_at, id) order."""
    for model_name in ('PointsTransaction', 'WalletTransaction'):
        model = apps.get_model('members', model_name)
        member_ids = model.objects.values_list('member_id', flat=True).distinct()
        for member_id in member_ids:
            rows = model.objects.filter(member_id=member_id).order_by('created_at', 'id')
            for sequence, pk in enumerate(rows.values_list('pk', flat=True), start=1):
                model.objects.filter(pk=pk).update(sequence=sequence)


class Migration(migrations.Migration):

    dependencies = [
        ('members', '0002_seed_member_levels'),
    ]

    operations = [
        migrations.AddField(
            model_name='pointstransaction',
            name='sequence',
            field=models.PositiveIntegerField(
                default=0,
                editable=False,
                help_text='Per-member posting order, 1 for the first entry',
            ),
        ),
        migrations.AddField(
            model_name='wallettransaction',
            name='sequence',
            field=models.PositiveIntegerField(
                default=0,
                editable=False,
                help_text='Per-member posting order, 1 for the first entry',
            ),
        ),
        migrations.RunPython(backfill_sequence, migrations.RunPython.noop),
        migrations.AlterModelOptions(
            name='pointstransaction',
            options={'ordering': ['-created_at', '-sequence']},
        ),
        migrations.AlterModelOptions(
            name='wallettransaction',
            options={'ordering': ['-created_at', '-sequence']},
        ),
        migrations.AddConstraint(
            model_name='pointstransaction',
            constraint=models.UniqueConstraint(
                fields=('member', 'sequence'),
                name='points_tx_member_seq_uniq',
            ),
        ),
        migrations.AddConstraint(
            model_name='wallettransaction',
            constraint=models.UniqueConstraint(
                fields=('member', 'sequence'),
                name='wallet_tx_member_seq_uniq',
            ),
        ),
    ]
