"""Legacy data reconciliation engine for hotel guest services."""
