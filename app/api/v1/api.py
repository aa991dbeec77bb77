"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, ratings, stores, users

api_router = APIRouter()

# Signup, login, profile, password
api_router.include_router(auth.router)

# Admin user management
api_router.include_router(users.router)

# Stores, ownership, owner dashboard
api_router.include_router(stores.router)

# Ratings and admin dashboard
api_router.include_router(ratings.router)
