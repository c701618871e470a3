"""Cloudflare Turnstile widget coordination and verification service."""
