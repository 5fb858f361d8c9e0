"""
HTTP interceptor package.

Server-side middleware and helpers that sit in front of request handlers:
- Request/response logging with buffered bodies
- CORS response headers
- Request parameter name conversion between naming styles
- Execution time logging
- Redis-backed anti-replay protection for endpoints
- Logging hooks for outgoing httpx client calls

Structure:
- app.main: Middleware wiring and exception handlers.
- app.buffering: Re-readable request and response bodies.
- app.filters: CORS, HTTP logging and parameter name middleware.
- app.interceptors: Execution time middleware.
- app.antireplay: Anti-replay guard and decorator.
- app.client: httpx logging hooks.
- app.text: Case format conversion.
"""
