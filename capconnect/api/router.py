"""
Aggregates the feature routers mounted under `/api`.
"""

from fastapi import APIRouter

from capconnect.api.routes import (
    analytics,
    cap_table,
    companies,
    dashboards,
    deal_room,
    documents,
    investments,
    notifications,
    spvs,
    users,
)

router = APIRouter()

router.include_router(users.router, tags=["Users"])
router.include_router(companies.router, tags=["Companies"])
router.include_router(cap_table.router, tags=["Cap Table"])
router.include_router(investments.router, tags=["Investments"])
router.include_router(spvs.router, tags=["SPVs"])
router.include_router(documents.router, tags=["Documents"])
router.include_router(deal_room.router, tags=["Deal Room"])
router.include_router(notifications.router, tags=["Notifications"])
router.include_router(analytics.router, tags=["Analytics"])
router.include_router(dashboards.router, tags=["Dashboards"])

auth_router = users.auth_router
