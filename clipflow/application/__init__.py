"""Application layer - pipeline services and DTOs."""
