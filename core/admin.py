"""
Admin configuration for core app
"""
from django.contrib import admin
from .models import Institute, InstituteSequence


@admin.register(Institute)
class InstituteAdmin(admin.ModelAdmin):
    """Institute Admin. Code is editable only when creating."""
    list_display = ['name', 'code', 'owner_name', 'subscription_status', 'subscription_expiry', 'created_at']
    list_filter = ['subscription_status', 'created_at']
    search_fields = ['name', 'code', 'email', 'owner_name']
    ordering = ['name']

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ['code', 'created_at', 'updated_at']
        return ['created_at', 'updated_at']


@admin.register(InstituteSequence)
class InstituteSequenceAdmin(admin.ModelAdmin):
    list_display = ['institute', 'name', 'value', 'updated_at']
    list_filter = ['name']
    readonly_fields = ['value', 'updated_at']
