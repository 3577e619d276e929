"""
Fee payment API views (institute-scoped)
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from accounts.permissions import TENANT_PERMISSIONS
from core.utils import filter_by_institute, int_query_param
from students.models import Student
from .models import Payment, period_validator
from .serializers import PaymentCreateSerializer, PaymentSerializer, PendingFeeSerializer
from .services import collection_stats, current_period, pending_fees, record_payment_with_recheck

logger = logging.getLogger(__name__)


def _period_param(request):
    period = request.query_params.get('monthYear') or current_period()
    period_validator(period)
    return period


@api_view(['GET', 'POST'])
@permission_classes(TENANT_PERMISSIONS)
def fees_view(request):
    """
    GET /api/fees?studentId=&monthYear=&status=
    POST /api/fees: record a paid fee; 409 with the existing receipt if already paid
    """
    institute = request.user.institute

    if request.method == 'POST':
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            student = filter_by_institute(Student.objects.all(), request.user).get(pk=data['studentId'])
        except Student.DoesNotExist:
            return Response({'detail': 'Student not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)

        payment = record_payment_with_recheck(
            institute,
            student,
            data['monthYear'],
            data['amount'],
            data['paymentMode'],
            created_by=request.user,
            note=data.get('note', ''),
        )
        return Response(
            {'message': 'Payment recorded successfully', 'payment': PaymentSerializer(payment).data},
            status=status.HTTP_201_CREATED,
        )

    payments = filter_by_institute(Payment.objects.select_related('student'), request.user)
    params = request.query_params
    student_id = int_query_param(params, 'studentId')
    if student_id is not None:
        payments = payments.filter(student_id=student_id)
    if params.get('monthYear'):
        payments = payments.filter(period=params['monthYear'])
    if params.get('status'):
        payments = payments.filter(status=params['status'])
    return Response(PaymentSerializer(payments.order_by('-created_at'), many=True).data)


@api_view(['GET'])
@permission_classes(TENANT_PERMISSIONS)
def pending_fees_view(request):
    """
    GET /api/fees/pending?monthYear=YYYY-MM (default: current month)
    Active students without a paid payment for the month.
    """
    rows = pending_fees(request.user.institute, _period_param(request))
    return Response(PendingFeeSerializer(rows, many=True).data)


@api_view(['GET'])
@permission_classes(TENANT_PERMISSIONS)
def fee_stats_view(request):
    """
    GET /api/fees/stats?monthYear=YYYY-MM (default: current month)
    """
    return Response(collection_stats(request.user.institute, _period_param(request)))
