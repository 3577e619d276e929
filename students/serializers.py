"""
Serializers for students app
"""
from rest_framework import serializers
from .models import Student, contact_number_validator


class StudentSerializer(serializers.ModelSerializer):
    """
    Student serializer in the frontend's field names.
    `studentId` is the allocated code (read-only); `class` is accepted as alias for grade.
    """
    studentId = serializers.CharField(source='student_code', read_only=True)
    studentName = serializers.CharField(source='name', max_length=255)
    boardType = serializers.ChoiceField(source='board_type', choices=Student.BOARD_CHOICES)
    admissionDate = serializers.DateField(source='admission_date', required=False)
    parentName = serializers.CharField(source='parent_name', max_length=255)
    contactNumber = serializers.CharField(source='contact_number', validators=[contact_number_validator])
    email = serializers.EmailField(required=False, allow_blank=True)
    monthlyFee = serializers.DecimalField(
        source='monthly_fee', max_digits=10, decimal_places=2, min_value=0, required=False,
    )
    studentPhoto = serializers.CharField(source='photo', required=False, allow_blank=True, max_length=500)
    status = serializers.ChoiceField(choices=Student.STATUS_CHOICES, required=False)
    instituteId = serializers.IntegerField(source='institute_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Student
        fields = [
            'id', 'studentId', 'studentName', 'grade', 'boardType', 'admissionDate',
            'parentName', 'contactNumber', 'email', 'monthlyFee', 'status',
            'studentPhoto', 'instituteId', 'createdAt',
        ]
        read_only_fields = ['id']

    def to_internal_value(self, data):
        if 'class' in data and 'grade' not in data:
            data = data.copy()
            data['grade'] = data['class']
        return super().to_internal_value(data)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['class'] = data.pop('grade')
        if data.get('monthlyFee') is not None:
            data['monthlyFee'] = float(data['monthlyFee'])
        return data


class StudentBriefSerializer(serializers.ModelSerializer):
    """Compact student info embedded in attendance and fee rows."""
    studentId = serializers.CharField(source='student_code', read_only=True)
    studentName = serializers.CharField(source='name', read_only=True)
    boardType = serializers.CharField(source='board_type', read_only=True)
    monthlyFee = serializers.FloatField(source='monthly_fee', read_only=True)

    class Meta:
        model = Student
        fields = ['id', 'studentId', 'studentName', 'grade', 'boardType', 'monthlyFee']

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['class'] = data.pop('grade')
        return data
