"""HTTP primitives: Request, Response, Headers and cookies."""
