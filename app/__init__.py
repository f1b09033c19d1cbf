"""Storefront catalog service.

Product catalog management for the storefront admin backend: product
CRUD, multi-currency pricing, image validation, search and featured
ordering.
"""
