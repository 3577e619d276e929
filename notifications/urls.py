"""
URLs for notifications app
"""
from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('test-sms', views.test_sms_view, name='test-sms'),
]
