"""
API package containing the HTTP glue.

``error_handlers`` and ``middleware`` are installed on the application
by ``main.create_app``; versioned route tables live in subpackages
such as ``v1``.
"""
