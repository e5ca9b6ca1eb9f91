"""Settings package for the space reservation backend.

``base.py`` holds the configuration shared across environments; ``dev.py``,
``prod.py`` and ``test.py`` extend it with environment specific overrides.
"""
