"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from servicebook.api.v1 import admin, bookings, hosts, pricing

api_router = APIRouter()

# Pricing and coupons
api_router.include_router(pricing.router, tags=["Pricing"])

# Bookings and payments
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Hosts: subscriptions and properties
api_router.include_router(hosts.router, tags=["Hosts"])

# Admin
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
