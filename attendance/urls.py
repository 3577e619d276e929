"""
URLs for attendance app (mounted at api/attendance, no trailing slash)
"""
from django.urls import path, re_path
from . import views

app_name = 'attendance'

urlpatterns = [
    re_path(r'^/?$', views.attendance_view, name='list'),
    path('/bulk', views.bulk_attendance_view, name='bulk'),
    path('/today', views.today_attendance_view, name='today'),
]
