"""
JWT helpers: tokens carry the institute next to the user id.
"""
from rest_framework_simplejwt.tokens import RefreshToken


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    refresh['institute_id'] = user.institute_id
    return refresh
