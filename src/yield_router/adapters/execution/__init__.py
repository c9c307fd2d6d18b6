from yield_router.adapters.execution.dry_run import DryRunExecutor

__all__ = ["DryRunExecutor"]
