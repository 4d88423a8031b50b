"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied per route, not per router. Workouts mix an open
GET with protected writes, so each protected handler takes
Depends(get_current_user) and receives the caller as a parameter.
"""

from fastapi import APIRouter

from liftlog.api.auth import router as auth_router
from liftlog.api.health import router as health_router
from liftlog.api.workouts import router as workouts_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["users", "tokens"])
api_router.include_router(workouts_router, tags=["workouts"])
