import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Table',
            fields=[
                ('id', models.IntegerField(primary_key=True, serialize=False)),
                ('number', models.IntegerField(db_index=True)),
                ('places', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('is_vip', models.BooleanField(default=False)),
                ('min_order', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(0)])),
            ],
        ),
    ]
