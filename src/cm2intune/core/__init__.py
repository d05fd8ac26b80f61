"""Decision engine: classification, readiness, naming, detection, manifest."""
