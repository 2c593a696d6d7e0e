"""Users module - people and their tenant memberships."""
