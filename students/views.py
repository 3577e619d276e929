"""
Student API views (institute-scoped)
"""
import math

from django.db.models import Count, Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from accounts.permissions import TENANT_PERMISSIONS
from core.utils import filter_by_institute
from .models import Student
from .serializers import StudentSerializer
from .services import allocate_student, deactivate_student

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _students_queryset(request):
    return filter_by_institute(Student.objects.all(), request.user)


def _positive_int(value, default):
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


@api_view(['GET', 'POST'])
@permission_classes(TENANT_PERMISSIONS)
def students_view(request):
    """
    GET /api/students?class=&boardType=&status=&search=&page=&limit=
    POST /api/students: create a student with the next student code
    """
    if request.method == 'POST':
        serializer = StudentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        student = allocate_student(request.user.institute, **serializer.validated_data)
        return Response(StudentSerializer(student).data, status=status.HTTP_201_CREATED)

    params = request.query_params
    students = _students_queryset(request)
    if params.get('class'):
        students = students.filter(grade=params['class'])
    if params.get('boardType'):
        students = students.filter(board_type=params['boardType'])
    if params.get('status'):
        students = students.filter(status=params['status'])
    search = (params.get('search') or '').strip()
    if search:
        students = students.filter(
            Q(name__icontains=search) |
            Q(student_code__icontains=search) |
            Q(parent_name__icontains=search)
        )

    page = _positive_int(params.get('page'), 1)
    limit = min(_positive_int(params.get('limit'), DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
    total = students.count()
    total_pages = math.ceil(total / limit)
    offset = (page - 1) * limit
    rows = students.order_by('-created_at', '-id')[offset:offset + limit]

    return Response({
        'students': StudentSerializer(rows, many=True).data,
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': total_pages,
            'hasNextPage': page < total_pages,
            'hasPrevPage': page > 1,
        },
    })


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes(TENANT_PERMISSIONS)
def student_detail_view(request, pk):
    """
    GET /api/students/{id}
    PUT|PATCH /api/students/{id}: studentId (code) cannot be changed
    DELETE /api/students/{id}: mark inactive
    """
    try:
        student = _students_queryset(request).get(pk=pk)
    except Student.DoesNotExist:
        return Response({'detail': 'Student not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(StudentSerializer(student).data)

    if request.method == 'DELETE':
        deactivate_student(student)
        return Response({'message': 'Student marked as inactive', 'student': StudentSerializer(student).data})

    serializer = StudentSerializer(student, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes(TENANT_PERMISSIONS)
def student_dashboard_stats_view(request):
    """
    GET /api/students/stats/dashboard
    Active student totals, overall and per board.
    """
    active = _students_queryset(request).filter(status=Student.STATUS_ACTIVE)
    counts = active.aggregate(
        total=Count('id'),
        cbse=Count('id', filter=Q(board_type=Student.BOARD_CBSE)),
        icse=Count('id', filter=Q(board_type=Student.BOARD_ICSE)),
        state=Count('id', filter=Q(board_type=Student.BOARD_STATE)),
    )
    return Response({
        'totalStudents': counts['total'],
        'boardWise': {
            Student.BOARD_CBSE: counts['cbse'],
            Student.BOARD_ICSE: counts['icse'],
            Student.BOARD_STATE: counts['state'],
        },
    })
