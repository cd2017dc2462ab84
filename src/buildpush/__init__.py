"""buildpush: turn declarative build inputs into a ``docker buildx build`` invocation."""

__version__ = "0.1.0"
