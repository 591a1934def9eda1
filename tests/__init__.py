"""
Tests for the QKart storefront client

Unit tests cover the cart reconciler, the search debouncer, record decoding
and form validation. Component tests drive the API client and the
application shell against a fake backend patched into the HTTP session.
"""
