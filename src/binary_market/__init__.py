"""Binary-option prediction market: accounting and settlement engine."""
