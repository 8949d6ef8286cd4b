from rest_framework.permissions import BasePermission

from accounts.errors import FORBIDDEN_MESSAGE
from accounts.rbac import (
    DEFAULT_ROLE_MATRIX,
    ROLE_ADMIN,
    get_role_matrix_for_resource,
    resolve_user_role,
    role_can,
)


class HasAccessRole(BasePermission):
    message = FORBIDDEN_MESSAGE

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        resource_key = getattr(view, "access_resource_key", None)
        if resource_key:
            role_matrix = get_role_matrix_for_resource(resource_key)
        else:
            role_matrix = DEFAULT_ROLE_MATRIX

        role = resolve_user_role(user)
        request.access_role = role
        return role_can(role_matrix, role, request.method)


def is_admin(request) -> bool:
    role = getattr(request, "access_role", None) or resolve_user_role(request.user)
    return role == ROLE_ADMIN
