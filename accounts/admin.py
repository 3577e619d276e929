"""
Admin configuration for accounts app
"""
from django import forms
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.forms import ReadOnlyPasswordHashField, UserCreationForm
from .models import User


def _validate_institute_for_role(cleaned_data):
    role = cleaned_data.get('role')
    institute = cleaned_data.get('institute')
    if role == User.ROLE_OWNER and not institute:
        raise forms.ValidationError({'institute': 'Owner accounts require an institute.'})


class UserAdminForm(forms.ModelForm):
    """
    Change form with proper password handling.
    Password is read-only (hash display only); use the "Change password" link.
    """
    password = ReadOnlyPasswordHashField(
        label='Password',
        help_text='Raw passwords are not stored. Use the "Change password" link to set a new one.',
    )

    class Meta:
        model = User
        fields = '__all__'

    def clean(self):
        cleaned = super().clean()
        _validate_institute_for_role(cleaned)
        return cleaned


class UserAddForm(UserCreationForm):
    """Add form with institute validation."""

    class Meta(UserCreationForm.Meta):
        model = User
        fields = ('email', 'username', 'full_name', 'role', 'institute', 'phone')

    def clean(self):
        cleaned = super().clean()
        _validate_institute_for_role(cleaned)
        return cleaned


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom User Admin"""
    form = UserAdminForm
    add_form = UserAddForm
    list_display = ['email', 'username', 'full_name', 'role', 'institute', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'is_staff', 'institute', 'date_joined']
    search_fields = ['email', 'username', 'full_name']
    ordering = ['-date_joined']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal Info', {'fields': ('username', 'full_name', 'role', 'institute', 'phone')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Important dates', {'fields': ('last_login', 'date_joined', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'username', 'full_name', 'role', 'institute', 'phone', 'password1', 'password2'),
        }),
    )

    readonly_fields = ['date_joined', 'updated_at', 'last_login']
