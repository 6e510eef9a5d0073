from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Shop
    orders,
    instruments,
    categories,
    # Learning
    courses,
    discounts,
    payments,
    live_classes,
    notifications,
    practise_videos,
    # Showcase
    performances,
    audience_reviews,
    music_quotes,
    # Accounts
    user_auth,
    teacher_auth,
    admin_auth,
)


# Mount points are kept identical to the paths the mobile apps already call
api_router = APIRouter()

# ==================== Shop ====================
api_router.include_router(
    orders.router,
    prefix="/api/order",
    tags=["Orders"]
)
api_router.include_router(
    instruments.router,
    prefix="/api/instrument",
    tags=["Instruments"]
)
api_router.include_router(
    categories.router,
    prefix="/api/category",
    tags=["Categories"]
)

# ==================== Learning ====================
api_router.include_router(
    courses.router,
    prefix="/chinthanaprabha/courses-lessons",
    tags=["Courses"]
)
api_router.include_router(
    discounts.router,
    prefix="/chinthanaprabha/discount",
    tags=["Offers"]
)
api_router.include_router(
    payments.router,
    prefix="/chinthanaprabha/payment",
    tags=["Payments"]
)
api_router.include_router(
    live_classes.router,
    prefix="/chinthanaprabha/live",
    tags=["Live Classes"]
)
api_router.include_router(
    notifications.router,
    prefix="/chinthanaprabha",
    tags=["Notifications"]
)
api_router.include_router(
    practise_videos.router,
    prefix="/chinthanaprabha/practise",
    tags=["Practice Videos"]
)

# ==================== Showcase ====================
api_router.include_router(
    performances.router,
    prefix="/api/performance",
    tags=["Showcase"]
)
api_router.include_router(
    audience_reviews.router,
    prefix="/api/audienceReview",
    tags=["Showcase"]
)
api_router.include_router(
    music_quotes.router,
    prefix="/api/musicQuote",
    tags=["Showcase"]
)

# ==================== Accounts ====================
api_router.include_router(
    user_auth.router,
    prefix="/chinthanaprabha/user-auth",
    tags=["Student Auth"]
)
api_router.include_router(
    teacher_auth.router,
    prefix="/chinthanaprabha/teacher-auth",
    tags=["Teacher Auth"]
)
api_router.include_router(
    admin_auth.router,
    prefix="/chinthanaprabha/admin-auth",
    tags=["Admin Auth"]
)
