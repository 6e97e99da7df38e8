"""Shared configuration for the deployment tooling."""
