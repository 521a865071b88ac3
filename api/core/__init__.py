"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that multiple features use
(settings, errors, logging, path safety, the transcode pool). Keep
feature-specific file handling and business logic in the corresponding
feature package (e.g. `media/`, `products/`).
"""
