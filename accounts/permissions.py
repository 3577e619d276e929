"""
Custom permissions for institute-scoped access
"""
from rest_framework import permissions


class IsInstituteMember(permissions.BasePermission):
    """Authenticated user attached to an institute."""
    message = 'User is not linked to an institute.'

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            getattr(request.user, 'institute_id', None)
        )


class HasActiveSubscription(permissions.BasePermission):
    """
    Reject every tenant API call once the institute is inactive.
    Runs before the view touches any student or payment data.
    """
    message = 'Institute subscription has expired. Please renew.'
    code = 'subscription_inactive'

    def has_permission(self, request, view):
        institute = getattr(request.user, 'institute', None)
        return institute is not None and institute.is_subscription_active


TENANT_PERMISSIONS = [permissions.IsAuthenticated, IsInstituteMember, HasActiveSubscription]
