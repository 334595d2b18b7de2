"""Catalog domain - services, staff, service assignments, working hours and time off"""
