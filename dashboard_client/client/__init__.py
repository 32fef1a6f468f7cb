"""Authenticated request pipeline: models, transport, interceptors, client."""
