"""Cache preparation engine.

Exports:
    prepare_build_cache: Validate and describe the cache for one environment.
    prepare_environments: Prepare caches for several environments.
"""

from .build_cache import prepare_build_cache, prepare_environments, resolve_options

__all__ = ["prepare_build_cache", "prepare_environments", "resolve_options"]
