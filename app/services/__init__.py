# Services module
from app.services.otp_service import OTPService
from app.services.account_service import UserService, TeacherService, AdminService
from app.services.catalog_service import CatalogService
from app.services.coupon_service import CouponService
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService
from app.services.practise_service import PractiseService
from app.services.showcase_service import ShowcaseService

# Live classes / push
from app.services.push_gateway import FirebasePushGateway
from app.services.notification_service import NotificationService
from app.services.live_class_service import LiveClassService

__all__ = [
    "OTPService",
    "UserService",
    "TeacherService",
    "AdminService",
    "CatalogService",
    "CouponService",
    "OrderService",
    "PaymentService",
    "PractiseService",
    "ShowcaseService",
    # Live classes / push
    "FirebasePushGateway",
    "NotificationService",
    "LiveClassService",
]
