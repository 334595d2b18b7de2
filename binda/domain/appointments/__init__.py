"""Appointments domain - booking, the appointment status lifecycle and dashboard listings"""
