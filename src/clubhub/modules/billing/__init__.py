"""Billing module - platform plans, subscriptions and the Stripe adapter."""
