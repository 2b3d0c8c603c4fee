from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('healthcare', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Message',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('sender_model', models.CharField(choices=[('Patient', 'Patient'), ('Doctor', 'Doctor')], max_length=10)),
                ('sender_id', models.UUIDField()),
                ('recipient_model', models.CharField(choices=[('Patient', 'Patient'), ('Doctor', 'Doctor')], max_length=10)),
                ('recipient_id', models.UUIDField()),
                ('message_type', models.CharField(choices=[('appointment_request', 'Appointment Request'), ('appointment_response', 'Appointment Response'), ('general', 'General'), ('prescription', 'Prescription'), ('follow_up', 'Follow Up')], default='general', max_length=30)),
                ('subject', models.CharField(max_length=200)),
                ('content', models.TextField(max_length=2000)),
                ('is_read', models.BooleanField(default=False)),
                ('read_at', models.DateTimeField(blank=True, null=True)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('normal', 'Normal'), ('high', 'High'), ('urgent', 'Urgent')], default='normal', max_length=10)),
                ('attachments', models.JSONField(blank=True, default=list)),
                ('is_archived', models.BooleanField(default=False)),
                ('thread_id', models.CharField(blank=True, max_length=36)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='messages', to='healthcare.appointment')),
                ('parent_message', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='replies', to='messaging.message')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['recipient_id', '-created_at'], name='msg_recipient_created_idx'),
                    models.Index(fields=['sender_id', '-created_at'], name='msg_sender_created_idx'),
                    models.Index(fields=['appointment'], name='msg_appointment_idx'),
                    models.Index(fields=['thread_id'], name='msg_thread_idx'),
                    models.Index(fields=['is_read'], name='msg_is_read_idx'),
                ],
            },
        ),
    ]
