"""Infrastructure layer: executors, persistence, process isolation, logging."""
