"""Token persistence, renewal and session notifications."""
