"""Pipeline execution modules for the match engine."""

from .runner import NightlyMatchRunner, NightlyRunResult

__all__ = ['NightlyMatchRunner', 'NightlyRunResult']
