from django.utils.module_loading import import_string

from .config import get_settings_dict

DEFAULT_BACKEND = "ga_api_tracking.backends.threaded.ThreadPoolTrackingBackend"

_backend_instance = None
_tracker_instance = None


def get_backend():
    """Return singleton backend instance based on settings."""
    global _backend_instance
    if _backend_instance:
        return _backend_instance

    config = get_settings_dict()
    backend_path = config.get("backend", DEFAULT_BACKEND)
    options = {}
    if "max_workers" in config:
        options["max_workers"] = config["max_workers"]

    backend_class = import_string(backend_path)
    _backend_instance = backend_class(**options)
    return _backend_instance


def get_tracker():
    """Return singleton tracker built from settings."""
    global _tracker_instance
    if _tracker_instance:
        return _tracker_instance

    from .tracker import Tracker
    _tracker_instance = Tracker.from_settings(backend=get_backend())
    return _tracker_instance


def reset():
    """Forget the singletons, e.g. after the settings changed."""
    global _backend_instance, _tracker_instance
    if _backend_instance is not None:
        _backend_instance.shutdown(wait=False)
    _backend_instance = None
    _tracker_instance = None
