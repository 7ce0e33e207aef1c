"""Control Tower readiness checks and the sessions they run against."""
