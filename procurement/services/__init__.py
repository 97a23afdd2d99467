"""
Service layer.

Import concrete services from their subpackages; this package does not
re-export them so that repositories can depend on services.base without
import cycles.
"""
