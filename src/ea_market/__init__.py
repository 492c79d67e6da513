"""EA Market package.

This package is organized by feature modules (accounts, catalog, orders,
licenses, ...) with a thin Flask controller layer and service/repository layers.
"""
