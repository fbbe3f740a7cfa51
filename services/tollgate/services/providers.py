"""Authentication provider configuration: redirect URIs and defaults."""

from tollgate.config import settings

EMAIL_PROVIDER = "email"


class ProviderURLBuilder:
    """Builds the callback URL an OAuth provider redirects back to."""

    def __init__(self, server_url: str | None = None, api_prefix: str | None = None) -> None:
        server_url = settings.server_url if server_url is None else server_url
        api_prefix = settings.content_api_prefix if api_prefix is None else api_prefix
        self._server_url = server_url.rstrip("/")
        self._api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""

    def build_redirect_uri(self, provider: str) -> str:
        return f"{self._server_url}{self._api_prefix}/connect/{provider}/callback"


def _oauth_provider(name: str, scope: list[str], **extra: object) -> dict:
    return {
        "enabled": False,
        "icon": name,
        "key": "",
        "secret": "",
        "callback": f"{settings.server_url.rstrip('/')}/auth/{name}/callback",
        "scope": scope,
        **extra,
    }


def default_grant_config() -> dict[str, dict]:
    """Provider configuration seeded on first boot. Every OAuth provider starts disabled."""
    return {
        EMAIL_PROVIDER: {"enabled": True, "icon": "envelope"},
        "discord": _oauth_provider("discord", ["identify", "email"]),
        "facebook": _oauth_provider("facebook", ["email"]),
        "google": _oauth_provider("google", ["email"]),
        "github": _oauth_provider("github", ["user", "user:email"]),
        "microsoft": _oauth_provider("microsoft", ["user.read"]),
        "twitter": _oauth_provider("twitter", []),
        "gitlab": _oauth_provider("gitlab", ["read_user"]),
        "auth0": _oauth_provider("auth0", ["openid", "email", "profile"], subdomain="my-tenant.eu"),
    }
