import logging
import uuid

from rest_framework import exceptions
from rest_framework.authentication import TokenAuthentication

from accounts.context import reset_correlation_id, set_correlation_id
from accounts.errors import FORBIDDEN_MESSAGE, UNAUTHENTICATED_MESSAGE, json_error_response
from accounts.rbac import get_role_matrix_for_resource, resolve_user_role, role_can


class AccessGateMiddleware:
    """Session and role gate applied before any view declaring `access_resource_key`.

    - The caller is resolved from the Django session, falling back to a DRF token
      (`Authorization: Token <key>`).
    - No caller: 401. Caller role missing from the resource matrix for the HTTP
      method: 403. Both responses use the JSON error envelope.
    - Views without `access_resource_key` are left to their own permission classes.
    """

    def __init__(self, get_response):
        self.get_response = get_response
        self.logger = logging.getLogger(__name__)
        self.token_authentication = TokenAuthentication()

    def __call__(self, request):
        request.correlation_id = self._resolve_correlation_id(request)
        token = set_correlation_id(request.correlation_id)
        try:
            response = self.get_response(request)
            response["X-Correlation-ID"] = request.correlation_id
            return response
        finally:
            reset_correlation_id(token)

    def process_view(self, request, view_func, view_args, view_kwargs):
        view_class = getattr(view_func, "view_class", None) or getattr(view_func, "cls", None)
        resource_key = getattr(view_class, "access_resource_key", None)
        if not resource_key:
            return None

        user = self._authenticate(request)
        if user is None:
            self.logger.warning(
                "Rejected request without a valid session",
                extra={"path": request.path, "method": request.method},
            )
            return json_error_response(UNAUTHENTICATED_MESSAGE, 401)

        role = resolve_user_role(user)
        request.access_role = role
        role_matrix = get_role_matrix_for_resource(resource_key)
        if not role_can(role_matrix, role, request.method):
            self.logger.warning(
                "Rejected request for insufficient role",
                extra={
                    "path": request.path,
                    "method": request.method,
                    "role": role,
                    "resource": resource_key,
                    "user_id": user.pk,
                },
            )
            return json_error_response(FORBIDDEN_MESSAGE, 403)

        return None

    def _authenticate(self, request):
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated and user.is_active:
            return user

        try:
            result = self.token_authentication.authenticate(request)
        except exceptions.AuthenticationFailed:
            return None
        if result is None:
            return None
        return result[0]

    @staticmethod
    def _resolve_correlation_id(request) -> str:
        header_value = (request.headers.get("X-Correlation-ID", "") or "").strip()
        return header_value or str(uuid.uuid4())
