"""ferzcli -- stack-aware code scaffolding and remote assist CLI.

Detects whether a project is a Laravel or Node code base, renders the
matching boilerplate (models, controllers, routes, Swagger docs, tests,
migrations) from packaged Jinja2 templates, and forwards free-text
requests to the hosted ferzcli assist API.
"""

__version__ = "0.4.0"
