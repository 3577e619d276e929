"""
Admin configuration for attendance app
"""
from django.contrib import admin
from .models import AttendanceRecord


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    """Attendance Record Admin"""
    list_display = ['student', 'institute', 'date', 'status', 'sms_status', 'marked_by']
    list_filter = ['status', 'sms_status', 'date', 'institute']
    search_fields = ['student__name', 'student__student_code']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['-date']
