import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('table_number', models.IntegerField()),
                ('client_name', models.CharField(max_length=255)),
                ('phone_number', models.CharField(blank=True, max_length=50)),
                ('date', models.DateField()),
                ('slot_time_start', models.TimeField(help_text='Slot start time')),
                ('slot_time_end', models.TimeField(help_text='Slot end time')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'indexes': [models.Index(fields=['table_number', 'date'], name='reservation_table_date_idx')],
            },
        ),
        migrations.CreateModel(
            name='SlotLock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('table_number', models.IntegerField()),
                ('date', models.DateField()),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('table_number', 'date'), name='unique_slot_lock_key')],
            },
        ),
    ]
