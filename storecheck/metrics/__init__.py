from .observe import observe_scenario, observe_skipped_operation

__all__ = ["observe_scenario", "observe_skipped_operation"]
