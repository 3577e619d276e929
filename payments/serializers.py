"""
Serializers for payments app
"""
from decimal import Decimal
from rest_framework import serializers
from django.core.validators import MinValueValidator
from students.serializers import StudentBriefSerializer
from .models import Payment, period_validator


class PaymentSerializer(serializers.ModelSerializer):
    """Payment in the frontend's field names."""
    student = StudentBriefSerializer(read_only=True)
    studentRef = serializers.IntegerField(source='student_id', read_only=True)
    monthYear = serializers.CharField(source='period', read_only=True)
    paymentDate = serializers.DateField(source='payment_date', read_only=True)
    paymentMode = serializers.CharField(source='mode', read_only=True)
    receiptNumber = serializers.CharField(source='receipt_no', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'studentRef', 'student', 'monthYear', 'amount', 'paymentDate',
            'paymentMode', 'status', 'receiptNumber', 'note', 'createdAt',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if data.get('amount') is not None:
            data['amount'] = float(data['amount'])
        return data


class PaymentCreateSerializer(serializers.Serializer):
    """Payment create serializer (frontend format)"""
    studentId = serializers.IntegerField()
    monthYear = serializers.CharField(validators=[period_validator])
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    paymentMode = serializers.ChoiceField(choices=[choice for choice, _ in Payment.MODE_CHOICES], default=Payment.MODE_CASH)
    note = serializers.CharField(required=False, allow_blank=True, default='')


class PendingFeeSerializer(serializers.Serializer):
    student = StudentBriefSerializer(read_only=True)
    monthYear = serializers.CharField(read_only=True)
    amount = serializers.FloatField(read_only=True)
    status = serializers.CharField(read_only=True)
