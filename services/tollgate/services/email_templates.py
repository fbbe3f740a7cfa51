"""Email template validation and defaults.

Templates use `<%= KEY %>` interpolation. Only a fixed set of keys may be
interpolated; evaluation blocks (`<% ... %>`) and `${...}` expressions are
rejected because they would execute arbitrary code in the mail renderer.
"""

import re

AUTHORIZED_KEYS = frozenset(
    {
        "URL",
        "ADMIN_URL",
        "SERVER_URL",
        "CODE",
        "USER",
        "USER.email",
        "USER.username",
        "TOKEN",
    }
)

_INVALID_PATTERNS = (
    re.compile(r"<%[^=]([^<>%]*)%>", re.MULTILINE),
    re.compile(r"\$\{([^{}]*)\}", re.MULTILINE),
)
_INTERPOLATION = re.compile(r"<%=([^<>%=]*)%>")


def is_valid_email_template(template: object) -> bool:
    """Return True when `template` only interpolates authorized keys."""
    if not isinstance(template, str):
        return False
    if any(pattern.search(template) for pattern in _INVALID_PATTERNS):
        return False
    return all(match.strip() in AUTHORIZED_KEYS for match in _INTERPOLATION.findall(template))


DEFAULT_EMAIL_TEMPLATES: dict[str, dict] = {
    "reset_password": {
        "display": "Email.template.reset_password",
        "icon": "sync",
        "options": {
            "from": {"name": "Administration Panel", "email": "no-reply@tollgate.io"},
            "response_email": "",
            "object": "Reset password",
            "message": (
                "<p>We heard that you lost your password. Sorry about that!</p>\n\n"
                "<p>But don’t worry! You can use the following link to reset your password:</p>\n"
                "<p><%= URL %>?code=<%= TOKEN %></p>\n\n"
                "<p>Thanks.</p>"
            ),
        },
    },
    "email_confirmation": {
        "display": "Email.template.email_confirmation",
        "icon": "check-square",
        "options": {
            "from": {"name": "Administration Panel", "email": "no-reply@tollgate.io"},
            "response_email": "",
            "object": "Account confirmation",
            "message": (
                "<p>Thank you for registering!</p>\n\n"
                "<p>You have to confirm your email address. Please click on the link below.</p>\n\n"
                "<p><%= URL %>?confirmation=<%= CODE %></p>\n\n"
                "<p>Thanks.</p>"
            ),
        },
    },
}
