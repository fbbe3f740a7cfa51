"""Registrations contributed by the users-permissions plugin itself."""

from tollgate.permissions.catalog import CatalogBuilder, RouteSpec

USERS_PERMISSIONS = "users-permissions"

CONTROLLERS: dict[str, list[str]] = {
    "auth": [
        "callback",
        "changePassword",
        "connect",
        "emailConfirmation",
        "forgotPassword",
        "register",
        "resetPassword",
        "sendEmailConfirmation",
    ],
    "user": ["count", "create", "destroy", "find", "findOne", "me", "update"],
    "role": ["createRole", "deleteRole", "find", "findOne", "updateRole"],
    "permissions": ["getPermissions"],
}

POLICIES = ["isAuthenticated", "rateLimit"]

ROUTES = [
    RouteSpec("GET", "/connect/:provider", "auth.connect", ("rateLimit",)),
    RouteSpec("POST", "/auth/local", "auth.callback", ("rateLimit",)),
    RouteSpec("POST", "/auth/local/register", "auth.register", ("rateLimit",)),
    RouteSpec("GET", "/auth/:provider/callback", "auth.callback"),
    RouteSpec("POST", "/auth/forgot-password", "auth.forgotPassword", ("rateLimit",)),
    RouteSpec("POST", "/auth/reset-password", "auth.resetPassword", ("rateLimit",)),
    RouteSpec("GET", "/auth/email-confirmation", "auth.emailConfirmation"),
    RouteSpec("POST", "/auth/send-email-confirmation", "auth.sendEmailConfirmation"),
    RouteSpec("POST", "/auth/change-password", "auth.changePassword", ("isAuthenticated",)),
    RouteSpec("GET", "/users/count", "user.count"),
    RouteSpec("GET", "/users", "user.find"),
    RouteSpec("GET", "/users/me", "user.me", ("isAuthenticated",)),
    RouteSpec("GET", "/users/:id", "user.findOne"),
    RouteSpec("POST", "/users", "user.create"),
    RouteSpec("PUT", "/users/:id", "user.update"),
    RouteSpec("DELETE", "/users/:id", "user.destroy"),
    RouteSpec("GET", "/roles/:id", "role.findOne"),
    RouteSpec("GET", "/roles", "role.find"),
    RouteSpec("POST", "/roles", "role.createRole"),
    RouteSpec("PUT", "/roles/:role", "role.updateRole"),
    RouteSpec("DELETE", "/roles/:role", "role.deleteRole"),
    RouteSpec("GET", "/permissions", "permissions.getPermissions"),
]

DESCRIPTIONS = {
    "en": "Protect your API with a full authentication process based on JWT.",
    "fr": "Protégez votre API avec un processus d'authentification complet basé sur JWT.",
    "de": "Schütze deine API mit einem vollständigen Authentifizierungsprozess auf JWT-Basis.",
}


def register_users_permissions(builder: CatalogBuilder) -> CatalogBuilder:
    """Register the plugin's own controllers, policies and routes."""
    for policy in POLICIES:
        builder.register_policy(policy)
    return builder.register_plugin(
        USERS_PERMISSIONS,
        CONTROLLERS,
        routes=ROUTES,
        descriptions=DESCRIPTIONS,
        display_name="Users & Permissions",
    )
