"""Owners domain - OTP-gated registration and guest owners"""

__all__ = []
