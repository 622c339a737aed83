from fastapi import APIRouter

from driver_leave.api.drivers import drivers_router
from driver_leave.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(drivers_router)
api_router.include_router(requests_router)
