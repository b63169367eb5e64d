from fastapi import Request

from shared.models.errors import AuthError, ForbiddenError


def extract_api_key(request: Request) -> str | None:
    """Return the credential from X-API-Key, or from an "Authorization: Bearer" header."""
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key.strip()
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


async def verify_api_key(request: Request) -> None:
    """Check the caller's credential against the allow-set on app.state.api_keys.

    Args:
        request (Request): The FastAPI request object (provides app.state).

    Raises:
        AuthError: 401 if no credential was supplied.
        ForbiddenError: 403 if the credential is not allowed.
    """
    api_key = extract_api_key(request)
    if not api_key:
        raise AuthError(
            "API key is required. Please provide it via X-API-Key header or Authorization Bearer token."
        )
    if api_key not in request.app.state.api_keys:
        raise ForbiddenError("Invalid API key.")
