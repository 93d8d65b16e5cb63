"""
Core business logic for the device image catalog.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. This separation means we can test the
catalog logic in isolation and swap frameworks if needed.
"""
