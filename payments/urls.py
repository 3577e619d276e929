"""
URLs for payments app (mounted at api/fees, no trailing slash)
"""
from django.urls import path, re_path
from . import views

app_name = 'payments'

urlpatterns = [
    re_path(r'^/?$', views.fees_view, name='list'),
    path('/pending', views.pending_fees_view, name='pending'),
    path('/stats', views.fee_stats_view, name='stats'),
]
