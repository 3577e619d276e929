"""
Admin configuration for students app
"""
from django.contrib import admin
from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    """Student Admin. Codes are allocated by the API, never edited here."""
    list_display = ['student_code', 'name', 'institute', 'grade', 'board_type', 'status', 'created_at']
    list_filter = ['status', 'board_type', 'institute']
    search_fields = ['student_code', 'name', 'parent_name', 'contact_number']
    readonly_fields = ['student_code', 'institute', 'created_at', 'updated_at']
    ordering = ['-created_at']

    def has_add_permission(self, request):
        return False
