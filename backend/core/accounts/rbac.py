"""Role tiers and per-resource method matrices enforced by the access gate.

Two tiers exist: any authenticated role, and administrators only. A resource
maps each HTTP method to the set of roles allowed to call it. Deployments may
override single methods through `settings.ACCESS_ROLE_MATRICES`, e.g.
`{"bordereaux": {"POST": ["ADMIN"]}}`; an override that fails validation is
ignored as a whole.
"""

from copy import deepcopy

from django.conf import settings
from django.core.exceptions import ValidationError

ROLE_ADMIN = "ADMIN"
ROLE_BROKER = "BROKER"
ROLE_INSURER = "INSURER"

DEFAULT_ROLE = ROLE_BROKER
VALID_ROLES = frozenset((ROLE_ADMIN, ROLE_BROKER, ROLE_INSURER))

AUTHENTICATED_ROLES = VALID_ROLES
ADMIN_ROLES = frozenset((ROLE_ADMIN,))

READ_METHODS = ("GET", "HEAD", "OPTIONS")
WRITE_METHODS = ("POST", "PUT", "PATCH", "DELETE")
VALID_METHODS = frozenset(READ_METHODS + WRITE_METHODS + ("*",))


def build_role_matrix(*, read_roles=AUTHENTICATED_ROLES, write_roles=ADMIN_ROLES, **method_roles):
    """Matrix for one resource. `method_roles` (e.g. `post=...`) overrides single methods."""

    matrix = {method: frozenset(read_roles) for method in READ_METHODS}
    matrix.update({method: frozenset(write_roles) for method in WRITE_METHODS})
    for method, roles in method_roles.items():
        matrix[method.upper()] = frozenset(roles)
    return matrix


DEFAULT_RESOURCE_ROLE_MATRICES = {
    "profile": build_role_matrix(write_roles=()),
    "quotes": build_role_matrix(post=AUTHENTICATED_ROLES),
    "quotes_admin": build_role_matrix(read_roles=ADMIN_ROLES),
    "payment_installments": build_role_matrix(),
    "payment_installments_admin": build_role_matrix(read_roles=ADMIN_ROLES),
    "bordereaux": build_role_matrix(post=AUTHENTICATED_ROLES),
    "bordereaux_admin": build_role_matrix(read_roles=ADMIN_ROLES),
    "maintenance": build_role_matrix(read_roles=ADMIN_ROLES),
    "tariff": build_role_matrix(post=AUTHENTICATED_ROLES),
}

DEFAULT_ROLE_MATRIX = build_role_matrix()
KNOWN_RESOURCES = frozenset(DEFAULT_RESOURCE_ROLE_MATRICES)


def _method_errors(method: str, raw_roles) -> list[str]:
    if method not in VALID_METHODS:
        return [f"Méthode '{method}' inconnue. Autorisées: {sorted(VALID_METHODS)}"]
    if not isinstance(raw_roles, list) or not raw_roles:
        return [f"Méthode '{method}': liste de rôles non vide attendue."]
    unknown = sorted({str(role).upper() for role in raw_roles} - VALID_ROLES)
    if unknown:
        return [f"Méthode '{method}': rôles inconnus {unknown}. Autorisés: {sorted(VALID_ROLES)}"]
    return []


def validate_role_overrides_schema(overrides) -> None:
    """Raise `ValidationError` keyed by resource when an override is malformed."""

    if not overrides:
        return
    if not isinstance(overrides, dict):
        raise ValidationError("ACCESS_ROLE_MATRICES doit être un objet JSON.")

    errors = {}
    for resource, method_map in overrides.items():
        resource = str(resource)
        resource_errors = []
        if resource not in KNOWN_RESOURCES:
            resource_errors.append(f"Ressource '{resource}' inconnue. Connues: {sorted(KNOWN_RESOURCES)}")
        if isinstance(method_map, dict):
            for method, raw_roles in method_map.items():
                resource_errors.extend(_method_errors(str(method).upper(), raw_roles))
        else:
            resource_errors.append("Objet {méthode: [rôles]} attendu.")
        if resource_errors:
            errors[resource] = resource_errors

    if errors:
        raise ValidationError(errors)


def get_resource_role_matrices() -> dict:
    matrices = deepcopy(DEFAULT_RESOURCE_ROLE_MATRICES)
    overrides = getattr(settings, "ACCESS_ROLE_MATRICES", None) or {}
    try:
        validate_role_overrides_schema(overrides)
    except ValidationError:
        return matrices

    for resource, method_map in overrides.items():
        for method, raw_roles in method_map.items():
            matrices[str(resource)][str(method).upper()] = frozenset(str(role).upper() for role in raw_roles)
    return matrices


def get_role_matrix_for_resource(resource_key: str) -> dict:
    return get_resource_role_matrices().get(resource_key, DEFAULT_ROLE_MATRIX)


def role_can(role_matrix, role, method):
    allowed_roles = role_matrix.get(method, role_matrix.get("*", frozenset()))
    return role in allowed_roles


def resolve_user_role(user) -> str:
    """Role used for access checks; users without a profile are brokers."""

    if user is None or not user.is_authenticated:
        return ""
    if user.is_superuser:
        return ROLE_ADMIN
    profile = getattr(user, "profile", None)
    role = (getattr(profile, "role", "") or "").upper()
    return role if role in VALID_ROLES else DEFAULT_ROLE
