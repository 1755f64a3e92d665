from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security import HTTPBearer


bearer_scheme = HTTPBearer(auto_error=False)

MISSING_TOKEN_DETAIL = "Authorization Bearer GitHub token is required"


def extract_bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    """Extract the GitHub token forwarded as a Bearer credential.

    The token is passed through to GitHub unchanged apart from trimming.

    Raises:
        HTTPException: If credentials are missing, malformed, or empty.
    """

    if credentials is None:
        raise HTTPException(status_code=401, detail=MISSING_TOKEN_DETAIL)

    if credentials.scheme.lower() != "bearer" or not credentials.credentials.strip():
        raise HTTPException(status_code=401, detail=MISSING_TOKEN_DETAIL)

    return credentials.credentials.strip()
