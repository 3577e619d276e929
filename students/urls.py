"""
URLs for students app (mounted at api/students, no trailing slash)
"""
from django.urls import path, re_path
from . import views

app_name = 'students'

urlpatterns = [
    re_path(r'^/?$', views.students_view, name='list'),
    path('/stats/dashboard', views.student_dashboard_stats_view, name='dashboard-stats'),
    path('/<int:pk>', views.student_detail_view, name='detail'),
]
