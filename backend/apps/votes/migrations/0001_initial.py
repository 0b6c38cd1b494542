# Generated manually
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('polls', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Vote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('voter_key', models.CharField(db_index=True, help_text='Cookie id, fingerprint or account id', max_length=300)),
                ('ip_address', models.GenericIPAddressField(blank=True, help_text='IP address of voter', null=True)),
                ('fingerprint', models.CharField(blank=True, help_text='Client device fingerprint', max_length=256)),
                ('user_agent', models.TextField(blank=True, help_text='User agent string')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('option', models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name='votes', to='polls.polloption')),
                ('poll', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='votes', to='polls.poll')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['poll', 'voter_key'], name='vote_poll_voter_key_idx'),
                    models.Index(fields=['poll', 'fingerprint'], name='vote_poll_fingerprint_idx'),
                    models.Index(fields=['poll', 'ip_address', 'created_at'], name='vote_poll_ip_created_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('poll', 'option', 'voter_key'), name='unique_poll_option_voter')],
            },
        ),
    ]
