from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Client',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, help_text='Full name or company name', max_length=255)),
                ('email', models.EmailField(help_text='Primary email address, used for every notification', max_length=255)),
                ('phone', models.CharField(blank=True, help_text='Phone number in E.164 format, enables SMS and chat notifications', max_length=20, null=True)),
                ('tax_id', models.CharField(blank=True, help_text='Tax identifier (CPF/CNPJ) sent to signature and billing providers', max_length=18, null=True)),
                ('address', models.TextField(blank=True, help_text='Full address', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Client',
                'verbose_name_plural': 'Clients',
                'ordering': ['-created_at'],
            },
        ),
    ]
