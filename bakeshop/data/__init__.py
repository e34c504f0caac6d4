"""Coupon storage for the coupon service."""
