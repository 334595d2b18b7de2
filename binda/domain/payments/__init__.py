"""Payments domain - Paystack deposits for online bookings"""
