"""Coach notes REST API package.

Sub-modules expose FastAPI routers for each domain:
- search: coach note search, autocomplete suggestions and popular tags
"""
