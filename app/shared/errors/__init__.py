"""
Error mapping for the HTTP layer.

Translates trading domain errors into status codes and the
shared ``{"error", "detail"}`` response body.
"""
