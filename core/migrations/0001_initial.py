# Generated migration for Institute and InstituteSequence

import core.models
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Institute',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('code', models.CharField(max_length=20, unique=True)),
                ('address', models.CharField(blank=True, default='', max_length=255)),
                ('contact_number', models.CharField(max_length=10)),
                ('email', models.EmailField(max_length=254)),
                ('owner_name', models.CharField(max_length=50)),
                ('subscription_status', models.CharField(choices=[('trial', 'Trial'), ('active', 'Active'), ('inactive', 'Inactive')], db_index=True, default='trial', max_length=20)),
                ('subscription_expiry', models.DateTimeField(default=core.models.default_subscription_expiry)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Institute',
                'verbose_name_plural': 'Institutes',
                'db_table': 'institutes',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='InstituteSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=50)),
                ('value', models.PositiveIntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('institute', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sequences', to='core.institute')),
            ],
            options={
                'verbose_name': 'Institute Sequence',
                'verbose_name_plural': 'Institute Sequences',
                'db_table': 'institute_sequences',
            },
        ),
        migrations.AddConstraint(
            model_name='institutesequence',
            constraint=models.UniqueConstraint(fields=('institute', 'name'), name='unique_institute_sequence_name'),
        ),
    ]
