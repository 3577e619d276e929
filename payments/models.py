"""
Payment models
"""
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from accounts.models import User
from students.models import Student

period_validator = RegexValidator(r'^\d{4}-(0[1-9]|1[0-2])$', 'Period must be YYYY-MM')


class Payment(models.Model):
    """
    Monthly fee payment.
    At most one paid row per (institute, student, period); pending/overdue rows
    may repeat. Receipt numbers are assigned only to paid rows.
    """
    MODE_CASH = 'cash'
    MODE_ONLINE = 'online'
    MODE_CHEQUE = 'cheque'
    MODE_UPI = 'upi'

    MODE_CHOICES = [
        (MODE_CASH, 'Cash'),
        (MODE_ONLINE, 'Online'),
        (MODE_CHEQUE, 'Cheque'),
        (MODE_UPI, 'UPI'),
    ]

    STATUS_PAID = 'paid'
    STATUS_PENDING = 'pending'
    STATUS_OVERDUE = 'overdue'

    STATUS_CHOICES = [
        (STATUS_PAID, 'Paid'),
        (STATUS_PENDING, 'Pending'),
        (STATUS_OVERDUE, 'Overdue'),
    ]

    institute = models.ForeignKey(
        'core.Institute',
        on_delete=models.CASCADE,
        related_name='payments',
        db_column='institute_id',
    )
    student = models.ForeignKey(
        Student,
        on_delete=models.PROTECT,
        related_name='payments',
    )
    period = models.CharField(max_length=7, validators=[period_validator], help_text="Billing month YYYY-MM")
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    payment_date = models.DateField(null=True, blank=True)
    mode = models.CharField(max_length=20, choices=MODE_CHOICES, default=MODE_CASH)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    receipt_no = models.CharField(max_length=50, blank=True, null=True)
    note = models.TextField(blank=True, default='')
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_payments',
        db_column='created_by_id',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payments'
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['institute', 'student', 'period'],
                condition=models.Q(status='paid'),
                name='unique_paid_payment_per_period',
            ),
            models.UniqueConstraint(
                fields=['institute', 'receipt_no'],
                condition=models.Q(receipt_no__isnull=False),
                name='unique_institute_receipt_no',
            ),
        ]
        indexes = [
            models.Index(fields=['institute', 'period', 'status'], name='payments_inst_period_idx'),
            models.Index(fields=['student', 'period'], name='payments_student_period_idx'),
        ]

    def __str__(self):
        return f"Payment {self.receipt_no or self.id} - {self.student.name} - {self.period} - {self.amount}"
