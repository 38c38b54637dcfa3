"""Persistence — registry file, audit ledger, and atomic writes."""
