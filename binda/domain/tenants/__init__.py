"""Tenants domain - public tenant lookup, onboarding and tenant settings"""
