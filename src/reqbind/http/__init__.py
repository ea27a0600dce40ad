"""Request collaborator: headers, query string, form data, ASGI request."""
