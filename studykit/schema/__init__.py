"""Schema package for request/response models and ORM tables."""
