
class LvBrowserError(Exception):
    """Base exception for all lv_browser errors"""
    pass

class ConfigError(LvBrowserError):
    """Invalid or inconsistent global.json / view config"""
    pass

class DatasetSchemaError(LvBrowserError):
    """
    Loaded table doesn't match what Dataset expects
    missing record index, duplicate indices, etc
    """
    pass

class SurfaceError(LvBrowserError):
    """Drawing surface could not be allocated with the requested geometry"""
    pass

class ViewLifecycleError(LvBrowserError):
    """View used outside of its created/rendered lifecycle"""
    pass
