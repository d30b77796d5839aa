# Generated manually to keep monthly schedules on their original day

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('reports', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='automatedreport',
            name='anchor_day',
            field=models.PositiveSmallIntegerField(blank=True, null=True, help_text='Day of month monthly runs return to'),
        ),
    ]
