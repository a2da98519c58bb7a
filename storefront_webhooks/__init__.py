"""Shopify webhook ingestion and processing for the storefront."""
