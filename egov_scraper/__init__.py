"""Download completed e-Gov filing documents from the HR portal into per-client folders."""

__version__ = "0.1.0"
