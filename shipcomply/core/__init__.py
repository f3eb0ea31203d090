"""Core models, transforms, validators and the field validation engine."""
