"""
Admin configuration for payments app
"""
from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Payment Admin. Paid payments are read-only."""
    list_display = ['receipt_no', 'student', 'institute', 'period', 'amount', 'payment_date', 'mode', 'status']
    list_filter = ['status', 'mode', 'period', 'institute']
    search_fields = ['receipt_no', 'student__name', 'student__student_code']
    readonly_fields = ['receipt_no', 'created_at', 'updated_at']
    ordering = ['-created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        if obj is not None and obj.status == Payment.STATUS_PAID:
            return False
        return super().has_change_permission(request, obj)
