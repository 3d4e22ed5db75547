"""Desktop release orchestration: build, bundle, sign, publish."""

__version__ = "0.3.0"
