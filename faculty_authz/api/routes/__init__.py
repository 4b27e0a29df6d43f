"""
API routes aggregation.
"""

from fastapi import APIRouter

from .courses import router as courses_router
from .classes import router as classes_router
from .coursework import router as coursework_router
from .users import router as users_router

router = APIRouter()

router.include_router(courses_router, prefix="/courses", tags=["courses"])
router.include_router(classes_router, prefix="/classes", tags=["classes"])
router.include_router(coursework_router, tags=["coursework"])
router.include_router(users_router, prefix="/users", tags=["users"])
