from app.schemas.auth import (
    RegisterRequest, LoginRequest, RefreshTokenRequest, TokenResponse, LoginResponse,
    CheckEmailRequest, CheckEmailResponse, SendEmailOTPRequest, SendEmailOTPResponse,
    VerifyEmailOTPRequest, VerifyEmailOTPResponse, ResetPasswordRequest,
    SendPhoneOTPRequest, SendPhoneOTPResponse, VerifyPhoneOTPRequest,
    SuccessResponse, MessageResponse,
)
from app.schemas.user import ProfileOut, ProfileCreateRequest, ProfileCreateResponse, ProfileUpdateRequest
from app.schemas.payment import CreateOrderRequest, CreateOrderResponse, PaymentVerifyRequest, PaymentVerifyResponse
from app.schemas.order import (
    OrderOut, OrderListResponse, OrderCreateRequest, OrderItemIn, OrderItemOut, ShippingAddress,
    OrderStatusUpdateRequest, OrderStatusUpdateResponse,
)
from app.schemas.store_settings import StoreSettingUpdateRequest
