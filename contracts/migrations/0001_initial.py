import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('clients', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Contract',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.TextField(help_text='Description of the contracted services')),
                ('value', models.PositiveBigIntegerField(help_text='Value per billing cycle in minor currency units (cents)', validators=[django.core.validators.MinValueValidator(1)])),
                ('periodicity', models.CharField(choices=[('monthly', 'Monthly'), ('quarterly', 'Quarterly'), ('semiannual', 'Semiannual'), ('annual', 'Annual')], max_length=20)),
                ('duration_months', models.PositiveIntegerField(help_text='Contract duration in months', validators=[django.core.validators.MinValueValidator(1)])),
                ('start_date', models.DateTimeField(help_text='Contract start, also the first billing due date')),
                ('end_date', models.DateTimeField(help_text='start_date + duration_months')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('pending_signature', 'Pending Signature'), ('active', 'Active'), ('cancelled', 'Cancelled'), ('expired', 'Expired')], db_index=True, default='draft', max_length=20)),
                ('pdf_url', models.URLField(blank=True, help_text='Location of the PDF sent for signature', max_length=500, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='contracts', to='clients.client')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['client', 'status'], name='contract_client_status_idx'),
                    models.Index(fields=['status', 'end_date'], name='contract_status_end_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Signature',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('external_envelope_id', models.CharField(blank=True, help_text='Provider envelope / signer identifier', max_length=255, null=True)),
                ('external_document_id', models.CharField(blank=True, db_index=True, help_text='Provider document / signature request identifier', max_length=255, null=True)),
                ('sign_url', models.URLField(blank=True, max_length=500, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('signed', 'Signed'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('signed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('contract', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='signature', to='contracts.contract')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='LifecycleOperation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('operation', models.CharField(choices=[('send_for_signature', 'Send for signature'), ('activate', 'Activate'), ('cancel', 'Cancel')], max_length=30)),
                ('idempotency_key', models.CharField(help_text='SHA256 of operation, contract and client-supplied key', max_length=64, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='operations', to='contracts.contract')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
