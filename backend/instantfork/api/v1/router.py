"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from instantfork.api.v1 import auth, claims, deals, health, locations, ratings, restaurants, users

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_v1_router.include_router(deals.router, prefix="/deals", tags=["deals"])
api_v1_router.include_router(claims.router, prefix="/claims", tags=["claims"])
api_v1_router.include_router(restaurants.router, prefix="/restaurants", tags=["restaurants"])
api_v1_router.include_router(users.router, prefix="/me", tags=["me"])
api_v1_router.include_router(ratings.router, prefix="/ratings", tags=["ratings"])
api_v1_router.include_router(locations.router, prefix="/locations", tags=["locations"])
