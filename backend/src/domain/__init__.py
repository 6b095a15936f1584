"""Domain layer: pure lifecycle, versioning and validation rules plus ports."""
