"""Happy Manager: scheduled motivational messages for Discord communities."""
