"""Signal Watch: cellular router signal telemetry monitor."""

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("signal-watch")
except Exception:
    __version__ = "dev"
