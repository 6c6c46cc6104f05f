"""TourEase Report Engine service."""
