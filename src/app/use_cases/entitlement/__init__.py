"""Entitlement domain use cases"""
from .redeem_voucher import RedeemVoucher
from .validate_voucher import ValidateVoucher
from .manage_vouchers import CreateVoucher, DeactivateVoucher, generate_voucher_code
from .create_payment import CreatePayment
from .confirm_payment import ConfirmPayment
from .poll_payment import PollPaymentStatus
from .register_device import RegisterDevice, DeactivateDevice, ListDevices
from .check_on_login import CheckSubscriptionOnLogin
from .has_active_subscription import HasActiveSubscription
from .login_gate import LoginGate
from .subscription_admin import StartTrial, GrantPremium, RevokeAccess
from .sweep_expiry import SweepExpiringSubscriptions
from .history import ListPaymentHistory, GetVoucherStats, ListVoucherHistory
from .dtos import (
    RequestContext,
    SubscriptionRecordDTO,
    AccessDecisionDTO,
    NoticeSeverity,
    LoginCheckDTO,
    GrantPremiumCommandDTO,
    RedeemVoucherCommandDTO,
    RedeemVoucherResponseDTO,
    VoucherValidationDTO,
    CreateVoucherCommandDTO,
    VoucherDTO,
    CreatePaymentCommandDTO,
    PaymentDTO,
    ConfirmPaymentCommandDTO,
    ConfirmPaymentResponseDTO,
    PollOutcome,
    PollPaymentCommandDTO,
    PollResultDTO,
    RegisterDeviceCommandDTO,
    DeviceRegistrationDTO,
    DeactivateDeviceResponseDTO,
    DeviceListDTO,
    LoginCommandDTO,
    LoginResultDTO,
    ExpirySweepResultDTO,
    PaymentHistoryDTO,
    VoucherUsageDTO,
    VoucherStatsDTO,
    VoucherHistoryDTO,
)

__all__ = [
    "RedeemVoucher",
    "ValidateVoucher",
    "CreateVoucher",
    "DeactivateVoucher",
    "generate_voucher_code",
    "CreatePayment",
    "ConfirmPayment",
    "PollPaymentStatus",
    "RegisterDevice",
    "DeactivateDevice",
    "ListDevices",
    "CheckSubscriptionOnLogin",
    "HasActiveSubscription",
    "LoginGate",
    "StartTrial",
    "GrantPremium",
    "RevokeAccess",
    "RequestContext",
    "SubscriptionRecordDTO",
    "AccessDecisionDTO",
    "NoticeSeverity",
    "LoginCheckDTO",
    "GrantPremiumCommandDTO",
    "RedeemVoucherCommandDTO",
    "RedeemVoucherResponseDTO",
    "VoucherValidationDTO",
    "CreateVoucherCommandDTO",
    "VoucherDTO",
    "CreatePaymentCommandDTO",
    "PaymentDTO",
    "ConfirmPaymentCommandDTO",
    "ConfirmPaymentResponseDTO",
    "PollOutcome",
    "PollPaymentCommandDTO",
    "PollResultDTO",
    "RegisterDeviceCommandDTO",
    "DeviceRegistrationDTO",
    "DeactivateDeviceResponseDTO",
    "DeviceListDTO",
    "LoginCommandDTO",
    "LoginResultDTO",
    "ExpirySweepResultDTO",
    "SweepExpiringSubscriptions",
    "ListPaymentHistory",
    "GetVoucherStats",
    "ListVoucherHistory",
    "PaymentHistoryDTO",
    "VoucherUsageDTO",
    "VoucherStatsDTO",
    "VoucherHistoryDTO",
]
