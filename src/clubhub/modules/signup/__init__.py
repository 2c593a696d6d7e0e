"""Signup module - tenant provisioning and billing activation."""
