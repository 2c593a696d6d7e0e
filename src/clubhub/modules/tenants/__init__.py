"""Tenants module - tenant registry, directory and merchant accounts."""
