import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('equipment', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='DamagedEquipment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('description', models.TextField(blank=True, null=True)),
                ('repair_status', models.CharField(choices=[('pending', 'Pending'), ('in_progress', 'In Progress'), ('completed', 'Completed')], default='pending', max_length=20)),
                ('reported_at', models.DateTimeField(auto_now_add=True)),
                ('repaired_at', models.DateTimeField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('equipment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='damage_reports', to='equipment.equipment')),
            ],
            options={
                'db_table': 'damaged_equipments',
                'ordering': ['-reported_at'],
                'verbose_name_plural': 'Damaged equipment',
                'indexes': [
                    models.Index(fields=['repair_status'], name='idx_damaged_status'),
                    models.Index(fields=['-reported_at'], name='idx_damaged_reported'),
                ],
            },
        ),
    ]
