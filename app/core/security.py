"""
JWT verification for tokens issued by Supabase Auth.

The API never issues tokens itself: Supabase signs them with the project's
JWT secret (HS256) and we only verify the signature and expiry here.
"""

from jose import JWTError, jwt
from app.core.config import settings


def decode_supabase_token(token: str) -> dict:
    """
    Decode and validate a Supabase access token.

    Args:
        token: The raw JWT from the Authorization header

    Returns:
        Dictionary containing the token payload (sub, email, exp, ...)

    Raises:
        JWTError: If the token is invalid, expired or the secret is missing
    """
    if not settings.SUPABASE_JWT_SECRET:
        raise JWTError("JWT secret not configured")

    # Supabase sets aud="authenticated"; we do not pin the audience
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.SUPABASE_JWT_ALGORITHM],
        options={"verify_aud": False},
    )
