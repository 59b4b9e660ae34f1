"""Packaged YAML resources: scheduler defaults and speaker line banks."""
