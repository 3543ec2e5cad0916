"""Internal helpers for libsyscall, not covered by versioning policy."""
