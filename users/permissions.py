from rest_framework import permissions


class IsExamAdmin(permissions.BasePermission):
    """
    Allows access to users with the admin role, and to Django staff.
    Participants are always blocked.
    """
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return getattr(request.user, 'is_exam_admin', False)
