"""
Management command to seed development data.
Usage: python manage.py seed_dev [--students N]
"""
import os
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from attendance.models import AttendanceRecord
from attendance.services import mark_attendance
from core.exceptions import DuplicatePayment
from core.models import Institute
from core.utils import generate_institute_code
from payments.models import Payment
from payments.services import current_period, record_payment
from students.models import Student
from students.services import allocate_student

User = get_user_model()

SEED_INSTITUTE_NAME = 'Demo Tuition Classes'
GRADES = ['8', '9', '10']
BOARDS = [Student.BOARD_CBSE, Student.BOARD_ICSE, Student.BOARD_STATE]


class Command(BaseCommand):
    help = 'Seed development data: 1 institute, 1 owner, students, today\'s attendance and some payments'

    def add_arguments(self, parser):
        parser.add_argument('--students', type=int, default=5, help='Number of students to create')

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('Starting seed data...'))

        with transaction.atomic():
            institute = Institute.objects.filter(name=SEED_INSTITUTE_NAME).first()
            if institute is None:
                institute = Institute.objects.create(
                    name=SEED_INSTITUTE_NAME,
                    code=generate_institute_code(SEED_INSTITUTE_NAME),
                    address='12 MG Road, Pune',
                    contact_number='9876543210',
                    email='demo@tuition.local',
                    owner_name='Demo Owner',
                )
            self.stdout.write(self.style.SUCCESS(f'Institute: {institute.name} ({institute.code})'))

            owner_email = os.getenv('SEED_OWNER_EMAIL', 'owner@tuition.local')
            owner_password = os.getenv('SEED_OWNER_PASSWORD', 'owner123')
            owner, created = User.objects.get_or_create(
                email=owner_email,
                defaults={
                    'username': 'owner',
                    'full_name': institute.owner_name,
                    'institute': institute,
                },
            )
            owner.set_password(owner_password)
            owner.save()
            if created:
                self.stdout.write(self.style.SUCCESS(f'Created owner: {owner_email}'))
            else:
                self.stdout.write(self.style.WARNING(f'Owner exists, password updated: {owner_email}'))

            students = []
            for i in range(1, options['students'] + 1):
                student = allocate_student(
                    institute,
                    name=f'Student {i}',
                    grade=GRADES[i % len(GRADES)],
                    board_type=BOARDS[i % len(BOARDS)],
                    parent_name=f'Parent {i}',
                    contact_number=f'98765{i:05d}',
                    monthly_fee=Decimal('1500.00'),
                    admission_date=timezone.localdate() - timedelta(days=30 * i),
                )
                students.append(student)
                self.stdout.write(self.style.SUCCESS(f'Student: {student.student_code} {student.name}'))

            today = timezone.localdate()
            for i, student in enumerate(students):
                status = AttendanceRecord.STATUS_ABSENT if i % 4 == 3 else AttendanceRecord.STATUS_PRESENT
                mark_attendance(institute, student, today, status, marked_by=owner)

            period = current_period()
            for student in students[::2]:
                try:
                    payment = record_payment(
                        institute, student, period, student.monthly_fee, Payment.MODE_CASH, created_by=owner,
                    )
                except DuplicatePayment as exc:
                    payment = exc.existing
                self.stdout.write(f'  Payment {payment.receipt_no} for {student.student_code}')

        self.stdout.write(self.style.SUCCESS('Seed data complete.'))
