"""Domain layer - request/response models and pure decoding logic."""
