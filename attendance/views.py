"""
Attendance API views (institute-scoped)
"""
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from accounts.permissions import TENANT_PERMISSIONS
from core.utils import filter_by_institute, int_query_param
from students.models import Student
from .models import AttendanceRecord
from .serializers import AttendanceRecordSerializer, BulkAttendanceSerializer, MarkAttendanceSerializer
from .services import mark_attendance, today_summary


def _date_param(params, name):
    value = params.get(name)
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError:
        return None


@api_view(['GET', 'POST'])
@permission_classes(TENANT_PERMISSIONS)
def attendance_view(request):
    """
    GET /api/attendance?date=&studentId=&startDate=&endDate=
    POST /api/attendance: {studentId, date, status}; marking again updates the day
    """
    if request.method == 'POST':
        serializer = MarkAttendanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            student = filter_by_institute(Student.objects.all(), request.user).get(pk=data['studentId'])
        except Student.DoesNotExist:
            return Response({'detail': 'Student not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)
        record = mark_attendance(
            request.user.institute, student, data['date'], data['status'], marked_by=request.user,
        )
        return Response(AttendanceRecordSerializer(record).data)

    params = request.query_params
    records = filter_by_institute(AttendanceRecord.objects.select_related('student'), request.user)
    day = _date_param(params, 'date')
    if day:
        records = records.filter(date=day)
    student_id = int_query_param(params, 'studentId')
    if student_id is not None:
        records = records.filter(student_id=student_id)
    start, end = _date_param(params, 'startDate'), _date_param(params, 'endDate')
    if start and end:
        records = records.filter(date__range=(start, end))
    return Response(AttendanceRecordSerializer(records.order_by('-date', 'student__name'), many=True).data)


@api_view(['POST'])
@permission_classes(TENANT_PERMISSIONS)
def bulk_attendance_view(request):
    """
    POST /api/attendance/bulk: {date, attendanceData: [{studentId, status}]}
    Students outside the institute are skipped.
    """
    serializer = BulkAttendanceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    day = serializer.validated_data['date']
    entries = serializer.validated_data['attendanceData']

    students = filter_by_institute(Student.objects.all(), request.user).in_bulk(
        [entry['studentId'] for entry in entries]
    )
    results = []
    for entry in entries:
        student = students.get(entry['studentId'])
        if student is None:
            continue
        results.append(mark_attendance(
            request.user.institute, student, day, entry['status'], marked_by=request.user,
        ))

    return Response({
        'message': 'Attendance marked successfully',
        'results': AttendanceRecordSerializer(results, many=True).data,
    })


@api_view(['GET'])
@permission_classes(TENANT_PERMISSIONS)
def today_attendance_view(request):
    """
    GET /api/attendance/today
    """
    summary = today_summary(request.user.institute, timezone.localdate())
    summary['records'] = AttendanceRecordSerializer(summary['records'], many=True).data
    return Response(summary)
