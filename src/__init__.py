"""ECS workload construct package.

Configuration models live in ``src.models``; runtime settings for the CDK
entry point live in ``src.config``.
"""

__all__ = []
