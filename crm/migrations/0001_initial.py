from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='WebhookLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event', models.CharField(choices=[('contract_signed', 'Contract Signed'), ('payment_confirmed', 'Payment Confirmed'), ('contract_cancelled', 'Contract Cancelled')], db_index=True, max_length=50)),
                ('payload', models.JSONField(blank=True, default=dict, help_text='Body sent (or a reference to it on error)')),
                ('status', models.CharField(choices=[('success', 'Success'), ('error', 'Error')], db_index=True, max_length=10)),
                ('response', models.TextField(blank=True, help_text='Response body on success', null=True)),
                ('error', models.TextField(blank=True, help_text='Error message on failure', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
