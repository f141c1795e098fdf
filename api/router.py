from fastapi import APIRouter
from .fields import router as fields_router
from .lots import router as lots_router
from .cycles import router as cycles_router
from .harvests import router as harvests_router
from .stock import router as stock_router
from .truck_trips import router as truck_trips_router
from .trucks import router as trucks_router
from .providers import router as providers_router
from .options import router as options_router

api_router = APIRouter()
api_router.include_router(fields_router)
api_router.include_router(lots_router)
api_router.include_router(cycles_router)
api_router.include_router(harvests_router)
api_router.include_router(stock_router)
api_router.include_router(truck_trips_router)
api_router.include_router(trucks_router)
api_router.include_router(providers_router)
api_router.include_router(options_router)
