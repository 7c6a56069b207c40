import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('academics', '0001_initial'),
        ('core', '0001_initial'),
        ('students', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Mark',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('score', models.DecimalField(decimal_places=2, help_text='Score out of 20', max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('20'))])),
                ('uploaded_at', models.DateTimeField(auto_now=True)),
                ('academic_year', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='core.academicyear')),
                ('class_assigned', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='academics.class')),
                ('sequence', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='core.sequence')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='students.student')),
                ('subject', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='academics.subject')),
                ('term', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='core.term')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='uploaded_marks', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Mark',
                'verbose_name_plural': 'Marks',
                'ordering': ['student', 'subject', 'sequence'],
                'indexes': [models.Index(fields=['academic_year', 'class_assigned'], name='mark_year_class_idx')],
                'constraints': [models.UniqueConstraint(fields=('student', 'subject', 'class_assigned', 'academic_year', 'term', 'sequence'), name='unique_mark_per_sequence')],
            },
        ),
        migrations.CreateModel(
            name='GradingBand',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('band_min', models.PositiveSmallIntegerField(help_text='Lowest average in this band (inclusive)', validators=[django.core.validators.MaxValueValidator(20)])),
                ('band_max', models.PositiveSmallIntegerField(help_text='Highest average in this band (inclusive)', validators=[django.core.validators.MaxValueValidator(20)])),
                ('comment', models.CharField(help_text='Remark printed for averages in this band, e.g. Very Good', max_length=100)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('academic_year', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='grading_bands', to='core.academicyear')),
                ('class_assigned', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='grading_bands', to='academics.class')),
            ],
            options={
                'verbose_name': 'Grading Band',
                'verbose_name_plural': 'Grading Bands',
                'ordering': ['academic_year', 'class_assigned', '-band_min'],
                'unique_together': {('academic_year', 'class_assigned', 'band_min', 'band_max')},
            },
        ),
        migrations.CreateModel(
            name='ReportCardSnapshot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('term_scope', models.CharField(choices=[('term1', 'First Term'), ('term2', 'Second Term'), ('term3', 'Third Term'), ('annual', 'Annual')], default='annual', max_length=10)),
                ('data', models.JSONField(help_text='Report card as returned by the single endpoint')),
                ('generated_at', models.DateTimeField(auto_now_add=True)),
                ('academic_year', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='report_snapshots', to='core.academicyear')),
                ('class_assigned', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='report_snapshots', to='academics.class')),
                ('generated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='report_snapshots', to=settings.AUTH_USER_MODEL)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='report_snapshots', to='students.student')),
            ],
            options={
                'verbose_name': 'Report Card Snapshot',
                'verbose_name_plural': 'Report Card Snapshots',
                'ordering': ['-generated_at'],
                'indexes': [models.Index(fields=['academic_year', 'class_assigned', 'term_scope'], name='snapshot_scope_idx')],
            },
        ),
    ]
