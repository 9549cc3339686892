"""Pydantic schemas shared by the resolver, task engine and model cache."""
