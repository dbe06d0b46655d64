import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('billing', '0001_initial'),
        ('clients', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('channel', models.CharField(choices=[('email', 'Email'), ('sms', 'SMS'), ('chat', 'Chat')], default='email', max_length=10)),
                ('purpose', models.CharField(choices=[('reminder', 'Payment Reminder'), ('confirmation', 'Confirmation'), ('alert', 'Alert')], db_index=True, max_length=20)),
                ('status', models.CharField(choices=[('sent', 'Sent'), ('failed', 'Failed')], default='sent', max_length=10)),
                ('message', models.TextField(help_text='Notification message text')),
                ('sent_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('client', models.ForeignKey(help_text='Client who received this notification', on_delete=django.db.models.deletion.PROTECT, related_name='notifications', to='clients.client')),
                ('invoice', models.ForeignKey(blank=True, help_text='Invoice this notification refers to, if any', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='notifications', to='billing.invoice')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['client', 'purpose'], name='notif_client_purpose_idx')],
            },
        ),
    ]
