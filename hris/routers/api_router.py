from fastapi import APIRouter
from hris.routers import (
    auth, employees, departments, leaves, leave_balance, grab_codes,
    business_trips, holidays, services, requests, performance_appraisal,
)

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(employees.router, tags=["Employees"])
api_router.include_router(departments.router, tags=["Departments"])
api_router.include_router(leaves.router, tags=["Leave"])
api_router.include_router(leave_balance.router, tags=["Leave Balance"])
api_router.include_router(grab_codes.router, tags=["Grab Codes"])
api_router.include_router(business_trips.router, tags=["Business Trips"])
api_router.include_router(holidays.router, tags=["Holidays"])
api_router.include_router(services.router, tags=["Services"])
api_router.include_router(requests.router, tags=["Requests"])
api_router.include_router(performance_appraisal.router, tags=["Performance Appraisal"])
