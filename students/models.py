"""
Student records. One row per admitted student, owned by one institute.
Soft delete: status flips to inactive, the row and its code are kept.
"""
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

contact_number_validator = RegexValidator(r'^[0-9]{10}$', 'Contact number must be 10 digits')


class Student(models.Model):
    """
    Student: student_code is `{instituteCode}-{NNNN}`, unique per institute,
    assigned once by students.services.allocate_student.
    """
    BOARD_CBSE = 'CBSE'
    BOARD_ICSE = 'ICSE'
    BOARD_STATE = 'State Board'

    BOARD_CHOICES = [
        (BOARD_CBSE, 'CBSE'),
        (BOARD_ICSE, 'ICSE'),
        (BOARD_STATE, 'State Board'),
    ]

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]

    institute = models.ForeignKey(
        'core.Institute',
        on_delete=models.CASCADE,
        related_name='students',
        db_column='institute_id',
    )
    student_code = models.CharField(max_length=40)
    name = models.CharField(max_length=255)
    grade = models.CharField(max_length=50, help_text="Class e.g. 10, 5A")
    board_type = models.CharField(max_length=20, choices=BOARD_CHOICES)
    admission_date = models.DateField()
    parent_name = models.CharField(max_length=255)
    contact_number = models.CharField(max_length=10, validators=[contact_number_validator])
    email = models.EmailField(blank=True, default='')
    monthly_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    photo = models.CharField(max_length=500, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students'
        verbose_name = 'Student'
        verbose_name_plural = 'Students'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['institute', 'student_code'],
                name='unique_institute_student_code',
            ),
        ]
        indexes = [
            models.Index(fields=['institute', 'status'], name='students_inst_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.student_code})"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE
