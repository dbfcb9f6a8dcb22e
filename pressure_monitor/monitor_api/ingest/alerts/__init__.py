from .alert_detector import detect_alert_runs, run_trigger_time

__all__ = ["detect_alert_runs", "run_trigger_time"]
