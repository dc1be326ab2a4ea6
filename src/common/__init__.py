"""
Common utilities for the days-since counter.

Modules:
- http: request/response types, Lambda event conversion, HTTP error kinds
- tasks: task name normalization and days-since messages
- auth: Basic-auth credential validation
- cors: HEAD / OPTIONS / preflight answers
- shields: shields.io badge client
- config: process configuration (env, optional SSM)
- logging_setup: root logger configuration
"""

__all__ = [
    "http",
    "tasks",
    "auth",
    "cors",
    "shields",
    "config",
    "logging_setup",
]
