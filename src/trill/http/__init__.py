"""HTTP primitives — Request, Response, headers, query strings, cookies, files."""
