"""Infrastructure implementations for falcon_core."""
