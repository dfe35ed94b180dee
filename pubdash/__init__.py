"""Public dashboard access: token resolution and scoped query requests."""
