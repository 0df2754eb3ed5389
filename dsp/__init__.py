"""Streaming signal primitives: ring buffers, filters, peak detection."""
