"""
Authentication endpoints.

Login (staff and student) is public; refresh, profile and logout need
a valid token.  Logout is purely client-side: tokens are never revoked
on the server and simply expire.
"""

from fastapi import Depends

from academy_api.app.api.responses import ok
from academy_api.app.core.security import Principal, get_current_principal
from academy_api.app.schemas.auth import LoginRequest
from academy_api.app.services.auth_service import AuthService


async def login(credentials: LoginRequest) -> dict:
    """Log a staff member in and return a bearer token."""
    result = await AuthService.login_staff(credentials.username, credentials.password)
    return ok(result, "Login successful")


async def student_login(credentials: LoginRequest) -> dict:
    """Log a student in and return a bearer token."""
    result = await AuthService.login_student(credentials.username, credentials.password)
    return ok(result, "Login successful")


async def refresh(principal: Principal = Depends(get_current_principal)) -> dict:
    token = await AuthService.refresh(principal)
    return ok({"token": token, "token_type": "bearer"}, "Token refreshed")


async def profile(principal: Principal = Depends(get_current_principal)) -> dict:
    return ok(await AuthService.profile(principal))


async def logout(principal: Principal = Depends(get_current_principal)) -> dict:
    return ok(message="Logout successful; discard the token on the client")
