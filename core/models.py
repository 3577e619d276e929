"""
Core models: Institute (the tenant) and per-institute counters.
"""
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


def default_subscription_expiry():
    return timezone.now() + timedelta(days=settings.TRIAL_DAYS)


class Institute(models.Model):
    """
    Institute / tuition center. Unit of data isolation: every student,
    attendance record and payment carries an institute reference.
    `code` is embedded into every generated identifier and never changes.
    """
    STATUS_TRIAL = 'trial'
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'

    SUBSCRIPTION_CHOICES = [
        (STATUS_TRIAL, 'Trial'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    name = models.CharField(max_length=100)
    code = models.CharField(max_length=20, unique=True)
    address = models.CharField(max_length=255, blank=True, default='')
    contact_number = models.CharField(max_length=10)
    email = models.EmailField()
    owner_name = models.CharField(max_length=50)
    subscription_status = models.CharField(
        max_length=20,
        choices=SUBSCRIPTION_CHOICES,
        default=STATUS_TRIAL,
        db_index=True,
    )
    subscription_expiry = models.DateTimeField(default=default_subscription_expiry)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'institutes'
        verbose_name = 'Institute'
        verbose_name_plural = 'Institutes'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.code})"

    @property
    def is_subscription_active(self):
        return self.subscription_status != self.STATUS_INACTIVE

    def save(self, *args, **kwargs):
        self.code = (self.code or '').upper()
        if self.pk:
            stored = Institute.objects.filter(pk=self.pk).values_list('code', flat=True).first()
            if stored is not None and stored != self.code:
                raise ValidationError({'code': 'Institute code cannot be changed.'})
        super().save(*args, **kwargs)


class InstituteSequence(models.Model):
    """
    Per-institute monotonic counter (e.g. receipt numbers).
    One row per (institute, name); incremented under a row lock.
    """
    RECEIPT = 'receipt'

    institute = models.ForeignKey(
        Institute,
        on_delete=models.CASCADE,
        related_name='sequences',
    )
    name = models.CharField(max_length=50)
    value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'institute_sequences'
        verbose_name = 'Institute Sequence'
        verbose_name_plural = 'Institute Sequences'
        constraints = [
            models.UniqueConstraint(
                fields=['institute', 'name'],
                name='unique_institute_sequence_name',
            ),
        ]

    def __str__(self):
        return f"{self.institute.code}:{self.name}={self.value}"
