"""FastAPI dependency injection functions."""

from fastapi import HTTPException, Request, status

from ..session import ReaderSession


def get_session(request: Request) -> ReaderSession:
    """Dependency that provides the application's reader session."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reader session is not running",
        )
    return session
