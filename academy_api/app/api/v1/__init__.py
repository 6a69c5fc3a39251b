"""
Version 1 of the API.

All routes are declared in ``router.ROUTES``; endpoint functions live
in ``endpoints`` and carry no routing metadata of their own.
"""
