"""
Path revalidation for statically generated front ends.

Receives content-change events from a CMS, derives the affected URL paths and
notifies the front end's revalidation endpoint.
"""

__version__ = "1.0.0"

PRODUCT_NAME = "CMS-Revalidate"
