from fastapi import APIRouter
from faculty_appraisal.routers import admin, appraisals, grading, reviews

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(appraisals.router, tags=["Appraisals"])
api_router.include_router(reviews.router, tags=["Reviews"])
api_router.include_router(grading.router, tags=["Grading"])
api_router.include_router(admin.router, tags=["Administration"])
