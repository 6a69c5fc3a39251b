"""
Route table for version 1 of the API.

Every route is one :class:`Route` entry: method, path, allowed roles
and endpoint.  ``build_router`` turns the table into a FastAPI router
in a single pass, attaching a ``require_roles`` dependency built from
each entry's role set.  Keeping the role sets as data makes the
authorization matrix auditable (and testable) without calling any
handler.  Paths are disjoint, so matching order does not matter.

An entry with an empty role set is public; the auth middleware lets
it through without a token.
"""

from dataclasses import dataclass
from typing import Callable

from fastapi import APIRouter, Depends, status

from academy_api.app.core.security import ALL_ROLES, require_roles

from .endpoints import auth, belts, classes, payments, students

API_PREFIX = "/api/v1"

PUBLIC: frozenset[str] = frozenset()
STAFF = frozenset({"admin", "teacher", "receptionist"})
ADMIN = frozenset({"admin"})
ADMIN_TEACHER = frozenset({"admin", "teacher"})
ADMIN_RECEPTION = frozenset({"admin", "receptionist"})
STUDENT = frozenset({"student"})
ANY = frozenset(ALL_ROLES)


@dataclass(frozen=True)
class Route:
    name: str
    method: str
    path: str
    endpoint: Callable
    roles: frozenset[str]
    status_code: int = status.HTTP_200_OK
    summary: str = ""

    @property
    def is_public(self) -> bool:
        return not self.roles


ROUTES: tuple[Route, ...] = (
    # Auth
    Route("auth.login", "POST", "/auth/login", auth.login, PUBLIC, summary="Staff login"),
    Route("auth.student_login", "POST", "/auth/student-login", auth.student_login, PUBLIC, summary="Student login"),
    Route("auth.refresh", "POST", "/auth/refresh", auth.refresh, ANY, summary="Reissue the caller's token"),
    Route("auth.profile", "GET", "/auth/profile", auth.profile, ANY, summary="Caller's profile"),
    Route("auth.logout", "POST", "/auth/logout", auth.logout, ANY, summary="Client-side logout"),
    # Students
    Route(
        "students.create", "POST", "/students", students.create_student, ADMIN_RECEPTION,
        status.HTTP_201_CREATED, "Register a student",
    ),
    Route(
        "students.deactivate", "DELETE", "/students/{student_id}", students.deactivate_student, ADMIN,
        summary="Deactivate a student",
    ),
    Route(
        "students.belt_history", "GET", "/students/{student_id}/belt-progress", students.belt_history, STAFF,
        summary="Student's promotion history",
    ),
    # Classes and enrollment
    Route(
        "classes.create", "POST", "/classes", classes.create_class, ADMIN_TEACHER,
        status.HTTP_201_CREATED, "Create a class",
    ),
    Route(
        "classes.roster", "GET", "/classes/{class_id}/students", classes.class_roster, STAFF,
        summary="Active enrollments of a class",
    ),
    Route(
        "classes.enroll", "POST", "/classes/{class_id}/enroll", classes.enroll_student, ADMIN_RECEPTION,
        status.HTTP_201_CREATED, "Enroll a student",
    ),
    Route(
        "classes.unenroll", "DELETE", "/classes/{class_id}/enroll/{student_id}", classes.unenroll_student,
        ADMIN_RECEPTION, summary="Unenroll a student",
    ),
    Route(
        "student.enroll", "POST", "/student/classes/{class_id}/enroll", classes.enroll_self, STUDENT,
        status.HTTP_201_CREATED, "Enroll the calling student",
    ),
    Route(
        "student.unenroll", "DELETE", "/student/classes/{class_id}/enroll", classes.unenroll_self, STUDENT,
        summary="Unenroll the calling student",
    ),
    # Belts
    Route(
        "belts.promote", "POST", "/belts/promote", belts.promote_student, ADMIN_TEACHER,
        status.HTTP_201_CREATED, "Promote a student",
    ),
    Route(
        "belts.get_promotion", "GET", "/belts/promotions/{promotion_id}", belts.get_promotion, STAFF,
        summary="Read a promotion",
    ),
    Route(
        "belts.update_promotion", "PUT", "/belts/promotions/{promotion_id}", belts.update_promotion,
        ADMIN_TEACHER, summary="Edit a promotion",
    ),
    Route(
        "belts.delete_promotion", "DELETE", "/belts/promotions/{promotion_id}", belts.delete_promotion, ADMIN,
        summary="Delete a promotion",
    ),
    # Payments
    Route(
        "payments.generate_monthly", "POST", "/payments/generate-monthly", payments.generate_monthly, ADMIN,
        status.HTTP_201_CREATED, "Generate monthly billing",
    ),
    Route(
        "payments.mark_paid", "POST", "/payments/{payment_id}/pay", payments.mark_paid, ADMIN_RECEPTION,
        summary="Mark a payment as paid",
    ),
)

_BY_NAME = {route.name: route for route in ROUTES}


def route_roles(name: str) -> frozenset[str]:
    """Allowed roles of the route called ``name`` (empty for public routes)."""
    return _BY_NAME[name].roles


def public_routes(prefix: str = API_PREFIX) -> list[tuple[str, str]]:
    """``(METHOD, full path)`` pairs that skip authentication."""
    return [(route.method, prefix + route.path) for route in ROUTES if route.is_public]


def build_router(routes: tuple[Route, ...] = ROUTES) -> APIRouter:
    """Register every entry of ``routes`` on a new router."""
    api_router = APIRouter()
    for route in routes:
        dependencies = [] if route.is_public else [Depends(require_roles(*sorted(route.roles)))]
        api_router.add_api_route(
            route.path,
            route.endpoint,
            methods=[route.method],
            name=route.name,
            summary=route.summary or None,
            status_code=route.status_code,
            dependencies=dependencies,
            tags=[route.name.split(".", 1)[0]],
        )
    return api_router


router = build_router()
