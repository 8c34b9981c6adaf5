# backend/app/__init__.py
"""
Notion notify relay backend application package.

This package contains:
- main: FastAPI application entrypoint
- webhook: Notion webhook pipeline (match templates, render, dispatch)
- notion: Notion API client, schema cache and property decoding
- templates: notification templates, condition evaluation and formatting
- security: token encryption and credential resolution
- notifications: outbound webhook senders
"""
