import soundstock.equipment.utils
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Equipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('category', models.CharField(max_length=100)),
                ('stock', models.PositiveIntegerField(default=1)),
                ('image', models.ImageField(blank=True, max_length=255, null=True, upload_to=soundstock.equipment.utils.equipment_image_path)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'equipments',
                'ordering': ['-created_at'],
                'verbose_name_plural': 'Equipment',
                'indexes': [
                    models.Index(fields=['category'], name='idx_equipment_category'),
                    models.Index(fields=['name'], name='idx_equipment_name'),
                ],
            },
        ),
    ]
