"""
Domain error taxonomy.

Services raise these; ``dalchat.main`` renders every ``ChatError`` as
``{"success": false, "error": <message>}`` with the class's status code.
All of them are terminal for the request that triggered them.
"""


class ChatError(Exception):
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ChatError):
    status_code = 400
    default_message = "Missing fields"


class InvalidRole(ValidationError):
    default_message = "Invalid role"


class Unauthorized(ChatError):
    status_code = 401
    default_message = "Invalid authentication credentials"


class InvalidCredentials(Unauthorized):
    default_message = "Invalid email or password"


class Forbidden(ChatError):
    status_code = 403
    default_message = "Forbidden"


class NotMember(Forbidden):
    default_message = "You are not a member of this server"


class InsufficientPermission(Forbidden):
    default_message = "You do not have permission to do that"


class NotFound(ChatError):
    status_code = 404
    default_message = "Not found"


class Conflict(ChatError):
    # Duplicates are reported as bad requests on the public API
    status_code = 400
    default_message = "Already exists"


class ProtectedResource(ChatError):
    status_code = 400
    default_message = "This resource is protected"
