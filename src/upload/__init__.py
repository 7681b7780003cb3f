"""Chunked multipart upload of large payloads."""
