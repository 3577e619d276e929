"""
Serializers for attendance app
"""
from rest_framework import serializers
from students.serializers import StudentBriefSerializer
from .models import AttendanceRecord


class AttendanceRecordSerializer(serializers.ModelSerializer):
    """Attendance record with the student embedded."""
    student = StudentBriefSerializer(read_only=True)
    smsStatus = serializers.CharField(source='sms_status', read_only=True)
    markedBy = serializers.IntegerField(source='marked_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = AttendanceRecord
        fields = ['id', 'student', 'date', 'status', 'smsStatus', 'markedBy', 'createdAt']
        read_only_fields = fields


class MarkAttendanceSerializer(serializers.Serializer):
    studentId = serializers.IntegerField()
    date = serializers.DateField()
    status = serializers.ChoiceField(choices=AttendanceRecord.STATUS_CHOICES)


class BulkEntrySerializer(serializers.Serializer):
    studentId = serializers.IntegerField()
    status = serializers.ChoiceField(choices=AttendanceRecord.STATUS_CHOICES)


class BulkAttendanceSerializer(serializers.Serializer):
    date = serializers.DateField()
    attendanceData = BulkEntrySerializer(many=True, allow_empty=False)
